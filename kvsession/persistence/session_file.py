"""Session cache file codec.

Layout (little-endian):

    magic   4 bytes  b"KVSC"
    version uint32
    count   uint32
    tokens  count * uint32

The file only records token ids; engines that can persist their cache cells
write them to a sidecar next to it (see ``engine_cache_path``).
"""

from __future__ import annotations

import logging
import os
import struct
from collections.abc import Sequence
from pathlib import Path

from ..config import SESSION_ENGINE_CACHE_SUFFIX
from ..errors import StateRestoreError

logger = logging.getLogger(__name__)

_MAGIC = b"KVSC"
_VERSION = 1
_HEADER = struct.Struct("<4sII")


def engine_cache_path(path: str) -> str:
    """Sidecar path for the engine's own cache cells."""
    return f"{path}{SESSION_ENGINE_CACHE_SUFFIX}"


class SessionCacheFile:
    """Reads and writes the token sequence of a session cache."""

    @staticmethod
    def exists(path: str) -> bool:
        return Path(path).is_file()

    @staticmethod
    def encode(tokens: Sequence[int]) -> bytes:
        return _HEADER.pack(_MAGIC, _VERSION, len(tokens)) + struct.pack(f"<{len(tokens)}I", *tokens)

    @staticmethod
    def decode(data: bytes) -> list[int]:
        if len(data) < _HEADER.size:
            raise StateRestoreError(f"session cache truncated: {len(data)} bytes")
        magic, version, count = _HEADER.unpack_from(data)
        if magic != _MAGIC:
            raise StateRestoreError(f"not a session cache file (magic={magic!r})")
        if version != _VERSION:
            raise StateRestoreError(f"unsupported session cache version {version}")
        expected = _HEADER.size + 4 * count
        if len(data) != expected:
            raise StateRestoreError(
                f"session cache size mismatch: expected {expected} bytes, got {len(data)}"
            )
        return list(struct.unpack_from(f"<{count}I", data, _HEADER.size))

    @classmethod
    def write(cls, path: str, tokens: Sequence[int]) -> None:
        """Atomically replace ``path`` with ``tokens``."""
        target = Path(path)
        tmp = target.with_name(f".{target.name}.tmp")
        tmp.write_bytes(cls.encode(tokens))
        os.replace(tmp, target)
        logger.debug("session_file: wrote %d tokens to %s", len(tokens), path)

    @classmethod
    def read(cls, path: str) -> list[int]:
        tokens = cls.decode(Path(path).read_bytes())
        logger.debug("session_file: read %d tokens from %s", len(tokens), path)
        return tokens


__all__ = ["SessionCacheFile", "engine_cache_path"]
