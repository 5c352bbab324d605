r"""Configuration and validation for the request pipeline."""

from __future__ import annotations

__all__ = [
    "DEFAULT_CHECK_INTERVAL",
    "DEFAULT_TASK_TIMEOUT",
    "DEFAULT_TIMEOUT",
    "ComputedDefaults",
    "DefaultsSource",
    "FixedDefaults",
    "PollingConfig",
    "RequestDefaults",
    "validate_defaults_params",
    "validate_polling_params",
    "validate_timeout",
]

from arespec.core.config import (
    DEFAULT_CHECK_INTERVAL,
    DEFAULT_TASK_TIMEOUT,
    DEFAULT_TIMEOUT,
    ComputedDefaults,
    DefaultsSource,
    FixedDefaults,
    PollingConfig,
    RequestDefaults,
)
from arespec.core.validation import (
    validate_defaults_params,
    validate_polling_params,
    validate_timeout,
)
