r"""Result values delivered to completion callbacks.

A completion callback receives exactly one ``Result``: either a
``Success`` carrying the decoded response or a ``Failure`` carrying the
exception that ended the operation.

Example:
    ```pycon
    >>> from arespec.result import Failure, Success
    >>> Success(42).get()
    42
    >>> Failure(ValueError("boom")).is_success
    False

    ```
"""

from __future__ import annotations

__all__ = ["Failure", "Result", "Success"]

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome.

    Args:
        value: The decoded value.
    """

    value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None

    def get(self) -> T:
        """Return the wrapped value."""
        return self.value


@dataclass(frozen=True)
class Failure:
    """Failed outcome.

    Args:
        error: The exception that ended the operation.
    """

    error: BaseException

    @property
    def is_success(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None

    def get(self) -> Any:
        """Raise the wrapped exception.

        Raises:
            BaseException: The wrapped error, always.
        """
        raise self.error


Result = Union[Success[T], Failure]
