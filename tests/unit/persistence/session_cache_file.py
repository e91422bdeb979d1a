"""Unit tests for the session cache file codec."""

from __future__ import annotations

import struct
from pathlib import Path

import pytest

from kvsession.errors import StateRestoreError
from kvsession.persistence import SessionCacheFile, engine_cache_path


def test_write_then_read(tmp_path: Path) -> None:
    path = str(tmp_path / "chat.session")

    SessionCacheFile.write(path, [1, 20, 21, 70000])

    assert SessionCacheFile.exists(path)
    assert SessionCacheFile.read(path) == [1, 20, 21, 70000]
    assert not (tmp_path / ".chat.session.tmp").exists()


def test_empty_sequence(tmp_path: Path) -> None:
    path = str(tmp_path / "empty.session")

    SessionCacheFile.write(path, [])

    assert SessionCacheFile.read(path) == []


def test_layout_is_little_endian() -> None:
    data = SessionCacheFile.encode([1, 258])

    assert data[:4] == b"KVSC"
    assert struct.unpack("<II", data[4:12]) == (1, 2)
    assert data[12:] == b"\x01\x00\x00\x00\x02\x01\x00\x00"


def test_missing_file_does_not_exist(tmp_path: Path) -> None:
    assert not SessionCacheFile.exists(str(tmp_path / "missing.session"))


@pytest.mark.parametrize(
    "data",
    [
        b"KVS",
        b"NOPE" + struct.pack("<II", 1, 0),
        b"KVSC" + struct.pack("<II", 7, 0),
        b"KVSC" + struct.pack("<II", 1, 3) + struct.pack("<I", 5),
    ],
)
def test_decode_rejects_bad_data(data: bytes) -> None:
    with pytest.raises(StateRestoreError):
        SessionCacheFile.decode(data)


def test_engine_cache_path_is_a_sidecar() -> None:
    assert engine_cache_path("/tmp/chat.session") == "/tmp/chat.session.kv"
