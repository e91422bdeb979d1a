"""Public telemetry API."""

from .sentry import init_sentry, capture_error, add_breadcrumb

__all__ = [
    "init_sentry",
    "capture_error",
    "add_breadcrumb",
]
