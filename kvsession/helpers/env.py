"""Environment helper utilities.

Provides functions for parsing environment variables into typed
configuration values.
"""

from __future__ import annotations

import os


def env_flag(name: str, default: bool) -> bool:
    """Return True/False for typical truthy env encodings."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int) -> int:
    """Return an integer env value, falling back to default when unset or blank."""
    value = (os.getenv(name) or "").strip()
    if not value:
        return default
    return int(value)


def env_float(name: str, default: float) -> float:
    """Return a float env value, falling back to default when unset or blank."""
    value = (os.getenv(name) or "").strip()
    if not value:
        return default
    return float(value)


def env_list(name: str, default: list[str], *, sep: str = "|") -> list[str]:
    """Split an env value on ``sep``, dropping empty entries.

    The pipe is the default separator because stop strings commonly
    contain commas and newlines.
    """
    value = os.getenv(name)
    if value is None:
        return list(default)
    return [item for item in value.split(sep) if item]


__all__ = [
    "env_flag",
    "env_int",
    "env_float",
    "env_list",
]
