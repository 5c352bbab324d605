r"""Configuration dataclasses and defaults.

This module provides the client-wide request defaults merged under every
``RequestSpec``, the sources those defaults are read from, and the
configuration of polling tasks.
"""

from __future__ import annotations

__all__ = [
    "ComputedDefaults",
    "DEFAULT_CHECK_INTERVAL",
    "DEFAULT_TASK_TIMEOUT",
    "DEFAULT_TIMEOUT",
    "DefaultsSource",
    "FixedDefaults",
    "PollingConfig",
    "RequestDefaults",
]

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Union

from arespec.core.validation import (
    validate_defaults_params,
    validate_polling_params,
)
from arespec.request import QueryItem, header_items

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from arespec.request import HeaderItems

# Default timeout in seconds for one request
DEFAULT_TIMEOUT = 30.0

# Default deadline in seconds for a whole polling task
DEFAULT_TASK_TIMEOUT = 600.0

# Default minimum delay in seconds between two polling checks
DEFAULT_CHECK_INTERVAL = 1.0


@dataclass(frozen=True)
class RequestDefaults:
    r"""Client-wide fallback values merged under every request.

    Args:
        base_url: Base URL used when a request does not override it.
        method: HTTP method used when a request does not override it.
        timeout: Timeout in seconds used when a request does not override it.
        headers: Headers added before the request's own headers. Stored
            as ``HeaderItems``.
        query_items: Query entries added before the request's own entries.
        parameters: Flat string map merged into every request's parameters,
            whatever their variant.

    Example:
        ```pycon
        >>> from arespec.core.config import RequestDefaults
        >>> defaults = RequestDefaults(base_url="https://example.com", method="get")
        >>> defaults.method, defaults.timeout
        ('GET', 30.0)
        >>> merged = defaults.merge(timeout=15.0)
        >>> merged.timeout
        15.0
        >>> defaults.timeout  # Original unchanged
        30.0

        ```
    """

    base_url: str
    method: str
    timeout: float = DEFAULT_TIMEOUT
    headers: HeaderItems = ()
    query_items: tuple[QueryItem, ...] = ()
    parameters: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        validate_defaults_params(base_url=self.base_url, method=self.method, timeout=self.timeout)
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", header_items(self.headers))
        object.__setattr__(
            self, "query_items", tuple(QueryItem(*item) for item in self.query_items)
        )
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def merge(self, **overrides: Any) -> RequestDefaults:
        """Create new defaults with the specified fields overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for fields to override.

        Returns:
            A new ``RequestDefaults`` instance.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)


class FixedDefaults:
    """Defaults source that always returns the same value.

    Args:
        defaults: The defaults to return.
    """

    def __init__(self, defaults: RequestDefaults) -> None:
        self._defaults = defaults

    def get(self) -> RequestDefaults:
        return self._defaults


class ComputedDefaults:
    r"""Defaults source that computes fresh defaults for every request.

    Args:
        provider: Callable invoked once per request.

    Example:
        ```pycon
        >>> from arespec.core.config import ComputedDefaults, RequestDefaults
        >>> tokens = iter(["a", "b"])
        >>> source = ComputedDefaults(
        ...     lambda: RequestDefaults(
        ...         base_url="https://example.com",
        ...         method="GET",
        ...         headers={"Authorization": next(tokens)},
        ...     )
        ... )
        >>> source.get().headers, source.get().headers
        ((('Authorization', 'a'),), (('Authorization', 'b'),))

        ```
    """

    def __init__(self, provider: Callable[[], RequestDefaults]) -> None:
        self._provider = provider

    def get(self) -> RequestDefaults:
        return self._provider()


DefaultsSource = Union[FixedDefaults, ComputedDefaults]


@dataclass(frozen=True)
class PollingConfig:
    r"""Configuration of a polling task.

    Args:
        task_timeout: Deadline for the whole task, in seconds. ``None``
            disables the deadline.
        check_interval: Minimum delay between the starts of two check
            requests, in seconds.

    Example:
        ```pycon
        >>> from arespec.core.config import PollingConfig
        >>> PollingConfig()
        PollingConfig(task_timeout=600.0, check_interval=1.0)

        ```
    """

    task_timeout: float | None = DEFAULT_TASK_TIMEOUT
    check_interval: float = DEFAULT_CHECK_INTERVAL

    def __post_init__(self) -> None:
        validate_polling_params(task_timeout=self.task_timeout, check_interval=self.check_interval)
