"""Durable session state: snapshots and session cache files."""

from .snapshot import restore, snapshot
from .session_file import SessionCacheFile, engine_cache_path

__all__ = [
    "SessionCacheFile",
    "engine_cache_path",
    "restore",
    "snapshot",
]
