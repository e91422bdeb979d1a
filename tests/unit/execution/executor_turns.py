"""Unit tests for generation turns: budgets, stop strings, end of sequence."""

from __future__ import annotations

import asyncio

import pytest

from kvsession.config import END_OF_TEXT_MARKER
from kvsession.errors import ValidationError
from kvsession.state import LoopPhase
from tests.config.tokenizer import EOS_ID, NEWLINE_ID
from tests.helpers.engine import FakeEngine
from tests.helpers.executor import build_executor, scripted_params
from tests.helpers.stream import collect

HELLO_WORLD = [1, 20, 21]
ONE, TWO, THREE, FOUR = 22, 23, 24, 25
USER, HI = 30, 31


def test_prompt_then_generation_until_budget() -> None:
    engine = FakeEngine()
    executor = build_executor(engine)
    params = scripted_params([ONE, TWO, THREE], max_tokens=3)

    outputs = collect(executor.infer("Hello world", params))

    assert outputs == [" one", " two", " three"]
    assert engine.advance_calls == [(HELLO_WORLD, 0), ([ONE], 3), ([TWO], 4)]
    assert executor.state.input_tokens == HELLO_WORLD
    assert executor.state.consumed_count == 3
    assert executor.state.resident_count == 5
    assert executor.state.pending_tokens == [THREE]
    assert executor.state.prompt_run is False
    assert executor.phase is LoopPhase.WAITING_FOR_INPUT
    assert params.sampling_pipeline.seen_recent[0] == HELLO_WORLD


def test_prompt_without_sentinel() -> None:
    engine = FakeEngine()
    executor = build_executor(engine, add_sentinel_on_prompt=False)

    collect(executor.infer("Hello world", scripted_params([ONE], max_tokens=1)))

    assert engine.advance_calls[0] == ([20, 21], 0)


def test_continuation_without_text_keeps_generating() -> None:
    engine = FakeEngine()
    executor = build_executor(engine)
    collect(executor.infer("Hello world", scripted_params([ONE], max_tokens=1)))

    outputs = collect(executor.infer(None, scripted_params([TWO], max_tokens=1)))

    assert outputs == [" two"]
    assert engine.advance_calls[-1] == ([ONE], 3)
    assert executor.state.pending_tokens == [TWO]


def test_eos_with_stop_string_forces_stop_tokens() -> None:
    engine = FakeEngine()
    executor = build_executor(engine)
    params = scripted_params([EOS_ID], max_tokens=8, stop_strings=["User:"])

    outputs = collect(executor.infer("Hello world", params))

    # The newline replaced EOS and was advanced before the forced stop string
    assert outputs == ["\n"]
    assert engine.advance_calls == [(HELLO_WORLD, 0), ([NEWLINE_ID], 3)]
    assert executor.state.input_tokens == HELLO_WORLD + [USER]
    assert executor.state.consumed_count == 4
    assert executor.state.pending_tokens == [USER]
    assert params.sampling_pipeline.accepted == [EOS_ID]
    assert executor.phase is LoopPhase.WAITING_FOR_INPUT


def test_eos_without_newline_token_ends_turn() -> None:
    engine = FakeEngine(newline_id=None)
    executor = build_executor(engine)

    outputs = collect(executor.infer("Hello world", scripted_params([ONE, EOS_ID], stop_strings=["User:"])))

    assert outputs == [" one", END_OF_TEXT_MARKER]
    assert executor.state.pending_tokens == [EOS_ID]
    assert executor.state.input_tokens == HELLO_WORLD
    assert executor.phase is LoopPhase.TERMINATED


def test_generated_stop_string_waits_then_resumes() -> None:
    engine = FakeEngine()
    executor = build_executor(engine)

    first = collect(executor.infer("Hello world", scripted_params([ONE, NEWLINE_ID, USER], stop_strings=["User:"])))
    second = collect(executor.infer(" hi", scripted_params([TWO, USER], stop_strings=["User:"])))

    assert first == [" one", "\n", "User:"]
    assert second == [" two", "User:"]
    assert executor.state.input_tokens == HELLO_WORLD + [HI, NEWLINE_ID]
    assert engine.advance_calls[-3:] == [([USER], 5), ([HI, NEWLINE_ID], 6), ([TWO], 8)]
    assert executor.state.resident_count == 9
    assert executor.phase is LoopPhase.WAITING_FOR_INPUT


def test_input_newline_is_not_duplicated() -> None:
    engine = FakeEngine()
    executor = build_executor(engine)
    collect(executor.infer("Hello world", scripted_params([ONE], max_tokens=1)))

    collect(executor.infer(" hi\n", scripted_params([TWO], max_tokens=1)))

    assert executor.state.input_tokens == HELLO_WORLD + [HI, NEWLINE_ID]


def test_context_shift_during_generation() -> None:
    engine = FakeEngine(context_size=8, batch_size=4)
    executor = build_executor(engine)
    params = scripted_params([ONE, TWO, THREE, FOUR], max_tokens=4, tokens_keep=1)

    outputs = collect(executor.infer("a b c d e", params))

    assert outputs == [" one", " two", " three", " four"]
    # The sentinel is kept; the oldest prompt tokens after it were evicted
    assert engine.cells == [1, 53, 54, ONE, TWO, THREE]
    assert executor.state.resident_count == 6
    assert executor.state.resident_count <= engine.context_size


def test_prompt_required_on_first_turn() -> None:
    executor = build_executor()

    with pytest.raises(ValidationError) as excinfo:
        collect(executor.infer(None, scripted_params([])))

    assert excinfo.value.error_code == "prompt_required"
    assert executor.state.input_tokens == []
    assert executor.state.prompt_run is True
    assert executor.phase is LoopPhase.PROMPT_CONSUMPTION


def test_invalid_params_rejected_before_any_work() -> None:
    engine = FakeEngine()
    executor = build_executor(engine)
    params = scripted_params([ONE])
    params.top_p = 0.0

    with pytest.raises(ValidationError):
        collect(executor.infer("Hello world", params))

    assert engine.advance_calls == []


def test_second_turn_rejected_while_one_is_running() -> None:
    executor = build_executor()

    async def scenario() -> str:
        stream = executor.infer("Hello world", scripted_params([ONE, TWO], max_tokens=2))
        first = await stream.__anext__()
        with pytest.raises(ValidationError) as excinfo:
            await executor.infer(None).__anext__()
        assert excinfo.value.error_code == "turn_in_progress"
        await stream.aclose()
        return first

    assert asyncio.run(scenario()) == " one"
    assert collect(executor.infer(None, scripted_params([THREE], max_tokens=1))) == [" three"]


def test_stream_decoder_is_scoped_to_one_turn() -> None:
    executor = build_executor()
    collect(executor.infer("Hello world", scripted_params([ONE, TWO], max_tokens=2)))

    for _ in range(3):
        outputs = collect(executor.infer(None, scripted_params([THREE, FOUR], max_tokens=2)))
        assert outputs == [" three", " four"]
        assert executor._decoder.buffered <= 1
