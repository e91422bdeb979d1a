"""Unit tests for rate-limited Sentry error capture."""

from __future__ import annotations

import pytest
import sentry_sdk

import kvsession.telemetry.sentry as sentry_mod
from kvsession.engines import DecodeStatus
from kvsession.errors import EngineDecodeError
from kvsession.context.shift import ContextWindowController
from kvsession.state import SessionState
from kvsession.telemetry import add_breadcrumb, capture_error, init_sentry
from tests.helpers.engine import FakeEngine
from tests.helpers.executor import build_executor, scripted_params
from tests.helpers.stream import collect


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[BaseException]:
    events: list[BaseException] = []
    monkeypatch.setattr(sentry_mod, "_initialized", True)
    monkeypatch.setattr(sentry_sdk, "capture_exception", events.append)
    sentry_mod.reset_sentry_state()
    yield events
    sentry_mod.reset_sentry_state()


@pytest.fixture
def breadcrumbs(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    crumbs: list[dict] = []
    monkeypatch.setattr(sentry_mod, "_initialized", True)
    monkeypatch.setattr(sentry_sdk, "add_breadcrumb", lambda **kwargs: crumbs.append(kwargs))
    return crumbs


# --- capture_error ---


def test_capture_is_noop_without_init(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sentry_mod, "_initialized", False)

    assert capture_error(RuntimeError("boom")) is False


def test_init_without_dsn_is_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sentry_mod, "_initialized", False)
    monkeypatch.setattr(sentry_mod, "SENTRY_DSN", "")

    assert init_sentry() is False


def test_capture_reports_once_per_class_window(captured: list[BaseException]) -> None:
    first = EngineDecodeError(DecodeStatus.COMPUTE_FAILED, 3)
    second = EngineDecodeError(DecodeStatus.NO_CACHE_SLOT, 4)

    assert capture_error(first, session_id="s1", extra={"pending": 2}) is True
    assert capture_error(second, session_id="s1") is False
    assert captured == [first]


def test_capture_rate_limit_is_per_class(captured: list[BaseException]) -> None:
    decode_error = EngineDecodeError(DecodeStatus.COMPUTE_FAILED, 3)
    other = RuntimeError("boom")

    assert capture_error(decode_error) is True
    assert capture_error(other) is True
    assert captured == [decode_error, other]


# --- add_breadcrumb ---


def test_breadcrumb_is_noop_without_init(monkeypatch: pytest.MonkeyPatch) -> None:
    crumbs: list[dict] = []
    monkeypatch.setattr(sentry_mod, "_initialized", False)
    monkeypatch.setattr(sentry_sdk, "add_breadcrumb", lambda **kwargs: crumbs.append(kwargs))

    add_breadcrumb("ignored", category="context")

    assert crumbs == []


def test_context_shift_leaves_breadcrumb(breadcrumbs: list[dict]) -> None:
    engine = FakeEngine(context_size=8)
    tokens = [10, 11, 20, 21, 22, 23, 24, 25]
    engine.fill(tokens)
    state = SessionState(input_tokens=tokens[:2], consumed_count=2, resident_count=8)

    ContextWindowController(engine).shift_if_needed(state, None, 1)

    assert [crumb["category"] for crumb in breadcrumbs] == ["context"]
    assert breadcrumbs[0]["data"]["keep"] == 2
    assert breadcrumbs[0]["data"]["resident"] == state.resident_count


def test_abandoned_turn_leaves_breadcrumb_and_event(
    breadcrumbs: list[dict],
    captured: list[BaseException],
) -> None:
    engine = FakeEngine()
    executor = build_executor(engine)
    engine.fail_next(DecodeStatus.COMPUTE_FAILED)

    with pytest.raises(EngineDecodeError) as excinfo:
        collect(executor.infer("Hello world", scripted_params([22], max_tokens=1)))

    assert breadcrumbs[-1]["category"] == "turn"
    assert breadcrumbs[-1]["level"] == "warning"
    assert breadcrumbs[-1]["data"]["status"] == DecodeStatus.COMPUTE_FAILED.value
    assert captured == [excinfo.value]
