"""Sentry error tracking with per-class rate-limiting."""

from __future__ import annotations

import time
import logging
from typing import Any

from ..errors import classify_error
from ..logging import current_log_context
from ..config.telemetry import (
    SENTRY_DSN,
    SENTRY_RELEASE,
    SENTRY_ENVIRONMENT,
    SENTRY_SAMPLE_RATE,
    SENTRY_RATE_LIMIT_S,
    SENTRY_TAG_TURN_ID,
    SENTRY_TAG_SESSION_ID,
    SENTRY_TAG_ERROR_CATEGORY,
)

logger = logging.getLogger(__name__)

_error_timestamps: dict[str, float] = {}
_initialized: bool = False


def init_sentry() -> bool:
    """Initialize Sentry SDK. Idempotent; returns False when no DSN is configured."""
    global _initialized  # noqa: PLW0603
    if _initialized:
        return True
    if not SENTRY_DSN:
        return False
    import sentry_sdk

    kwargs: dict[str, Any] = {
        "dsn": SENTRY_DSN,
        "environment": SENTRY_ENVIRONMENT,
        "traces_sample_rate": 0.0,
        "sample_rate": SENTRY_SAMPLE_RATE,
        "attach_stacktrace": True,
    }
    if SENTRY_RELEASE:
        kwargs["release"] = SENTRY_RELEASE

    sentry_sdk.init(**kwargs)
    _initialized = True
    logger.info("Sentry initialized: environment=%s", SENTRY_ENVIRONMENT)
    return True


def capture_error(
    error: BaseException,
    *,
    session_id: str | None = None,
    turn_id: str | None = None,
    extra: dict[str, Any] | None = None,
) -> bool:
    """Report an error to Sentry with rate-limiting per error class.

    Returns True when the event was handed to the SDK.
    """
    if not _initialized:
        return False

    key = type(error).__qualname__
    now = time.monotonic()
    last = _error_timestamps.get(key)
    if last is not None and (now - last) < SENTRY_RATE_LIMIT_S:
        return False
    _error_timestamps[key] = now

    import sentry_sdk

    fields = current_log_context()
    with sentry_sdk.new_scope() as scope:
        scope.set_tag(SENTRY_TAG_SESSION_ID, session_id or fields["session_id"])
        scope.set_tag(SENTRY_TAG_TURN_ID, turn_id or fields["turn_id"])
        scope.set_tag(SENTRY_TAG_ERROR_CATEGORY, classify_error(error))
        if extra:
            for k, v in extra.items():
                scope.set_extra(k, v)
        sentry_sdk.capture_exception(error)
    return True


def add_breadcrumb(
    message: str,
    *,
    category: str,
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    """Add a Sentry breadcrumb. No-op when Sentry is disabled."""
    if not _initialized:
        return
    import sentry_sdk

    sentry_sdk.add_breadcrumb(message=message, category=category, level=level, data=data or {})


def reset_sentry_state() -> None:
    """Forget rate-limit timestamps (for testing)."""
    _error_timestamps.clear()


__all__ = ["init_sentry", "capture_error", "add_breadcrumb", "reset_sentry_state"]
