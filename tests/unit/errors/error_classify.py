"""Unit tests for exception-to-label classification."""

from __future__ import annotations

from kvsession.engines import DecodeStatus
from kvsession.errors import (
    ValidationError,
    TurnAbortedError,
    EngineDecodeError,
    StateRestoreError,
    ContextConfigError,
    ConfigurationError,
    ModelResourceError,
    LoadCancelledError,
    LoadWeightsFailedError,
    classify_error,
    is_recoverable,
)


def test_classify_error_known_categories() -> None:
    assert classify_error(ValidationError("prompt_required", "missing prompt")) == "validation"
    assert classify_error(EngineDecodeError(DecodeStatus.NO_CACHE_SLOT, 12)) == "engine_decode"
    assert classify_error(TurnAbortedError()) == "turn_aborted"
    assert classify_error(ContextConfigError("too small")) == "context_config"
    assert classify_error(StateRestoreError("bad blob")) == "state_restore"
    assert classify_error(ModelResourceError("missing")) == "configuration"
    assert classify_error(LoadCancelledError()) == "cancelled"
    assert classify_error(LoadWeightsFailedError("/models/x.bin")) == "load_failed"
    assert classify_error(TimeoutError("deadline exceeded")) == "timeout"


def test_classify_error_defaults_to_unknown() -> None:
    assert classify_error(RuntimeError("boom")) == "unknown"


def test_configuration_errors_share_a_base() -> None:
    for exc in (ContextConfigError("x"), StateRestoreError("x"), ModelResourceError("x")):
        assert isinstance(exc, ConfigurationError)


def test_turn_failures_are_recoverable() -> None:
    assert is_recoverable(EngineDecodeError(DecodeStatus.COMPUTE_FAILED, 0))
    assert is_recoverable(ValidationError("prompt_required", "missing prompt"))
    assert not is_recoverable(ContextConfigError("too small"))
    assert not is_recoverable(StateRestoreError("bad blob"))


def test_engine_decode_error_carries_status() -> None:
    exc = EngineDecodeError(DecodeStatus.INVALID_BATCH, 7)

    assert exc.status is DecodeStatus.INVALID_BATCH
    assert exc.position == 7
    assert "INVALID_BATCH" in str(exc)


def test_load_failure_message_includes_reason() -> None:
    exc = LoadWeightsFailedError("/models/x.bin", "bad magic")

    assert exc.model_path == "/models/x.bin"
    assert str(exc) == "failed to load weights from /models/x.bin: bad magic"
