"""Telemetry configuration: Sentry constants."""

import os

from ..helpers.env import env_float

SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "production")
SENTRY_RELEASE: str = os.getenv("SENTRY_RELEASE", "")
SENTRY_SAMPLE_RATE: float = env_float("SENTRY_SAMPLE_RATE", 1.0)
# Minimum seconds between two reports of the same exception class
SENTRY_RATE_LIMIT_S: float = env_float("SENTRY_RATE_LIMIT_S", 60.0)

SENTRY_TAG_SESSION_ID = "session.id"
SENTRY_TAG_TURN_ID = "turn.id"
SENTRY_TAG_ERROR_CATEGORY = "error.category"


__all__ = [
    "SENTRY_DSN",
    "SENTRY_ENVIRONMENT",
    "SENTRY_RELEASE",
    "SENTRY_SAMPLE_RATE",
    "SENTRY_RATE_LIMIT_S",
    "SENTRY_TAG_SESSION_ID",
    "SENTRY_TAG_TURN_ID",
    "SENTRY_TAG_ERROR_CATEGORY",
]
