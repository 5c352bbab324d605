r"""Parameter validation utilities for request defaults and polling.

This module provides validation functions that check configuration
values before they are used to resolve requests or drive polling
tasks.
"""

from __future__ import annotations

__all__ = ["validate_defaults_params", "validate_polling_params", "validate_timeout"]


def validate_timeout(timeout: float | None, name: str = "timeout") -> None:
    """Validate a timeout-like parameter.

    Args:
        timeout: Number of seconds. ``None`` is accepted.
        name: Parameter name used in the error message.

    Raises:
        ValueError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from arespec.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(None)
        >>> validate_timeout(0)
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if timeout is not None and timeout <= 0:
        msg = f"{name} must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_defaults_params(base_url: str, method: str, timeout: float) -> None:
    """Validate request defaults.

    Args:
        base_url: The base URL every request falls back to. Must be an
            absolute URL.
        method: The default HTTP method. Must be non-empty.
        timeout: The default timeout in seconds. Must be > 0.

    Raises:
        ValueError: If any value is invalid.

    Example:
        ```pycon
        >>> from arespec.core.validation import validate_defaults_params
        >>> validate_defaults_params("https://example.com", "GET", 30.0)
        >>> validate_defaults_params("example.com", "GET", 30.0)
        Traceback (most recent call last):
        ...
        ValueError: base_url must be an absolute URL, got 'example.com'

        ```
    """
    if "://" not in base_url:
        msg = f"base_url must be an absolute URL, got {base_url!r}"
        raise ValueError(msg)
    if not method:
        msg = "method must be a non-empty string"
        raise ValueError(msg)
    validate_timeout(timeout)


def validate_polling_params(task_timeout: float | None, check_interval: float) -> None:
    """Validate polling task parameters.

    Args:
        task_timeout: Deadline for the whole task in seconds. Must be > 0
            if provided.
        check_interval: Minimum delay between two check requests, in
            seconds. Must be >= 0.

    Raises:
        ValueError: If any value is invalid.
    """
    validate_timeout(task_timeout, name="task_timeout")
    if check_interval < 0:
        msg = f"check_interval must be >= 0, got {check_interval}"
        raise ValueError(msg)
