r"""Exceptions raised by the request pipeline.

All errors derive from ``ArespecError`` so callers can catch the whole
family at once, while ``RequestCancelledError`` stays distinguishable
from ``TransportError`` for callers that special-case user-initiated
cancellation.
"""

from __future__ import annotations

__all__ = [
    "ArespecError",
    "CoordinatorError",
    "DecodingError",
    "PollingTimeoutError",
    "RequestCancelledError",
    "RequestEncodingError",
    "TransportError",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class ArespecError(Exception):
    """Base class of all errors raised by arespec."""


class TransportError(ArespecError):
    r"""Network or transport-layer failure.

    Args:
        method: The HTTP method of the failed request.
        url: The URL of the failed request.
        message: A descriptive error message.
        status_code: The HTTP status code, if a response was received.
        response: The ``httpx.Response``, if one was received.
        cause: The underlying exception, if any.

    Example:
        ```pycon
        >>> from arespec.exceptions import TransportError
        >>> error = TransportError(
        ...     method="GET",
        ...     url="https://api.example.com/data",
        ...     message="GET request to https://api.example.com/data failed with status 404",
        ...     status_code=404,
        ... )
        >>> error.status_code
        404

        ```
    """

    def __init__(
        self,
        method: str,
        url: str,
        message: str,
        *,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response = response
        self.cause = cause


class DecodingError(ArespecError):
    """Raised when a response payload does not match the expected
    response type.

    Args:
        message: A descriptive error message.
        response_type: The type the payload was decoded into.
        data: The raw payload.
    """

    def __init__(self, message: str, *, response_type: object = None, data: bytes | None = None) -> None:
        super().__init__(message)
        self.response_type = response_type
        self.data = data


class RequestCancelledError(ArespecError):
    """Raised when an operation did not complete because it, or its
    caller, was cancelled."""

    def __init__(self, message: str = "The operation was cancelled.") -> None:
        super().__init__(message)


class CoordinatorError(ArespecError):
    """Raised by a polling coordinator that cannot build a check request
    from the initial result."""


class PollingTimeoutError(ArespecError):
    """Raised when a polling task exceeds its task timeout.

    Args:
        timeout: The configured task timeout in seconds.
    """

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Polling task did not finish within {timeout} seconds.")
        self.timeout = timeout


class RequestEncodingError(ArespecError):
    """Raised when a resolved request cannot be encoded for the wire."""
