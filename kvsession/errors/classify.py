"""Exception classification helpers for log and telemetry labels."""

from __future__ import annotations

from .validation import ValidationError
from .engine import EngineDecodeError, TurnAbortedError
from .loading import LoadCancelledError, LoadWeightsFailedError
from .config import ContextConfigError, StateRestoreError, ConfigurationError

ERROR_CATEGORIES: tuple[tuple[type[BaseException], str], ...] = (
    (ValidationError, "validation"),
    (EngineDecodeError, "engine_decode"),
    (TurnAbortedError, "turn_aborted"),
    (ContextConfigError, "context_config"),
    (StateRestoreError, "state_restore"),
    (ConfigurationError, "configuration"),
    (LoadCancelledError, "cancelled"),
    (LoadWeightsFailedError, "load_failed"),
    (TimeoutError, "timeout"),
)


def classify_error(exc: BaseException) -> str:
    """Map an exception to a metric-friendly category label."""

    for cls, label in ERROR_CATEGORIES:
        if isinstance(exc, cls):
            return label
    return "unknown"


def is_recoverable(exc: BaseException) -> bool:
    """Return True when the session can keep going after ``exc``."""
    return isinstance(exc, (TurnAbortedError, ValidationError))


__all__ = ["ERROR_CATEGORIES", "classify_error", "is_recoverable"]
