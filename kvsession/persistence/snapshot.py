"""Session state snapshots.

A snapshot is a UTF-8 JSON object:

    {
      "format": "kvsession.interactive",
      "version": 1,
      "input_tokens": [...],
      "consumed_count": 12,
      "resident_count": 12,
      "recent_window": {"capacity": 64, "tokens": [...]},
      "cached_prefix_length": 0,
      "pending_tokens": [...],
      "sampler_aux": null,
      "session_cache_path": null,
      "session_tokens": [...],
      "session_consumed": 0,
      "prompt_run": false
    }

Restore is strict: every key must be present with the right type, and the
restored counters must satisfy the session invariants. Nothing is defaulted.
"""

from __future__ import annotations

import json
from typing import Any

from ..config import STATE_FORMAT, STATE_FORMAT_VERSION
from ..errors import StateRestoreError
from ..state.session import SessionState
from ..tokens.window import RecentTokenWindow


def snapshot(state: SessionState) -> bytes:
    """Serialize ``state`` to a versioned blob."""
    record = {
        "format": STATE_FORMAT,
        "version": STATE_FORMAT_VERSION,
        "input_tokens": list(state.input_tokens),
        "consumed_count": state.consumed_count,
        "resident_count": state.resident_count,
        "recent_window": {
            "capacity": state.recent_window.capacity,
            "tokens": state.recent_window.to_list(),
        },
        "cached_prefix_length": state.cached_prefix_length,
        "pending_tokens": list(state.pending_tokens),
        "sampler_aux": state.sampler_aux,
        "session_cache_path": state.session_cache_path,
        "session_tokens": list(state.session_tokens),
        "session_consumed": state.session_consumed,
        "prompt_run": state.prompt_run,
    }
    return json.dumps(record, separators=(",", ":")).encode("utf-8")


def restore(blob: bytes | str) -> SessionState:
    """Rebuild a SessionState from ``blob``.

    Raises:
        StateRestoreError: If the blob is not a compatible, complete snapshot.
    """
    try:
        record = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise StateRestoreError(f"state blob is not valid JSON: {exc}") from exc
    if not isinstance(record, dict):
        raise StateRestoreError("state blob must be a JSON object")

    fmt = record.get("format")
    version = record.get("version")
    if fmt != STATE_FORMAT:
        raise StateRestoreError(f"unsupported state format {fmt!r}, expected {STATE_FORMAT!r}")
    if version != STATE_FORMAT_VERSION:
        raise StateRestoreError(
            f"unsupported state version {version!r}, expected {STATE_FORMAT_VERSION}"
        )

    window = _require(record, "recent_window", dict)
    capacity = _require_int(window, "capacity", path="recent_window.")
    if capacity < 0:
        raise StateRestoreError(f"recent_window.capacity must be >= 0, got {capacity}")
    window_tokens = _require_tokens(window, "tokens", path="recent_window.")
    if len(window_tokens) > capacity:
        raise StateRestoreError(
            f"recent_window holds {len(window_tokens)} tokens but capacity is {capacity}"
        )

    sampler_aux = _require_key(record, "sampler_aux")
    if sampler_aux is not None and (isinstance(sampler_aux, bool) or not isinstance(sampler_aux, (int, float))):
        raise StateRestoreError(f"sampler_aux must be a number or null, got {type(sampler_aux).__name__}")
    cache_path = _require_key(record, "session_cache_path")
    if cache_path is not None and not isinstance(cache_path, str):
        raise StateRestoreError(
            f"session_cache_path must be a string or null, got {type(cache_path).__name__}"
        )

    state = SessionState(
        input_tokens=_require_tokens(record, "input_tokens"),
        consumed_count=_require_int(record, "consumed_count"),
        resident_count=_require_int(record, "resident_count"),
        recent_window=RecentTokenWindow(capacity, window_tokens),
        cached_prefix_length=_require_int(record, "cached_prefix_length"),
        pending_tokens=_require_tokens(record, "pending_tokens"),
        sampler_aux=None if sampler_aux is None else float(sampler_aux),
        session_cache_path=cache_path,
        session_tokens=_require_tokens(record, "session_tokens"),
        session_consumed=_require_int(record, "session_consumed"),
        prompt_run=_require(record, "prompt_run", bool),
    )
    problems = state.check_invariants()
    if problems:
        raise StateRestoreError("inconsistent state blob: " + "; ".join(problems))
    return state


def _require_key(record: dict[str, Any], key: str, *, path: str = "") -> Any:
    if key not in record:
        raise StateRestoreError(f"state blob is missing {path}{key}")
    return record[key]


def _require(record: dict[str, Any], key: str, kind: type, *, path: str = "") -> Any:
    value = _require_key(record, key, path=path)
    if not isinstance(value, kind):
        raise StateRestoreError(f"{path}{key} must be {kind.__name__}, got {type(value).__name__}")
    return value


def _require_int(record: dict[str, Any], key: str, *, path: str = "") -> int:
    value = _require_key(record, key, path=path)
    if isinstance(value, bool) or not isinstance(value, int):
        raise StateRestoreError(f"{path}{key} must be int, got {type(value).__name__}")
    return value


def _require_tokens(record: dict[str, Any], key: str, *, path: str = "") -> list[int]:
    value = _require(record, key, list, path=path)
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int) or item < 0:
            raise StateRestoreError(f"{path}{key} must contain non-negative token ids, got {item!r}")
    return list(value)


__all__ = ["restore", "snapshot"]
