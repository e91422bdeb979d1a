"""Unit tests for the torch penalty-then-sample fallback."""

from __future__ import annotations

import math

import pytest
import torch

from kvsession.sampling import InferenceParams, TorchSampler


def _params(**overrides) -> InferenceParams:
    base = {
        "repeat_penalty": 1.0,
        "frequency_penalty": 0.0,
        "presence_penalty": 0.0,
        "repeat_last_n": 64,
    }
    base.update(overrides)
    return InferenceParams(**base)


# --- penalize ---


def test_logit_bias_is_added() -> None:
    sampler = TorchSampler(seed=0)
    scores = sampler.penalize(
        torch.zeros(4),
        [],
        _params(logit_bias={2: 5.0}),
        newline_id=None,
        context_size=16,
    )

    assert scores.tolist() == [0.0, 0.0, 5.0, 0.0]


def test_repeat_penalty_shrinks_recent_logits() -> None:
    sampler = TorchSampler(seed=0)
    logits = torch.tensor([2.0, -2.0, 2.0, 1.0])

    scores = sampler.penalize(logits, [0, 1], _params(repeat_penalty=2.0), newline_id=None, context_size=16)

    assert scores.tolist() == [1.0, -4.0, 2.0, 1.0]
    assert logits.tolist() == [2.0, -2.0, 2.0, 1.0]


def test_frequency_and_presence_penalties() -> None:
    sampler = TorchSampler(seed=0)

    scores = sampler.penalize(
        torch.zeros(3),
        [1, 1, 2],
        _params(frequency_penalty=0.5, presence_penalty=0.25),
        newline_id=None,
        context_size=16,
    )

    assert scores.tolist() == pytest.approx([0.0, -1.25, -0.75])


def test_newline_is_exempt_unless_penalized() -> None:
    sampler = TorchSampler(seed=0)
    logits = torch.tensor([2.0, 2.0, 2.0])

    kept = sampler.penalize(logits, [1, 2], _params(repeat_penalty=2.0), newline_id=2, context_size=16)
    penalized = sampler.penalize(
        logits,
        [1, 2],
        _params(repeat_penalty=2.0, penalize_nl=True),
        newline_id=2,
        context_size=16,
    )

    assert kept.tolist() == [2.0, 1.0, 2.0]
    assert penalized.tolist() == [2.0, 1.0, 1.0]


def test_penalty_window_is_limited() -> None:
    sampler = TorchSampler(seed=0)

    scores = sampler.penalize(
        torch.full((3,), 2.0),
        [0, 1, 2],
        _params(repeat_penalty=2.0, repeat_last_n=1),
        newline_id=None,
        context_size=16,
    )

    assert scores.tolist() == [2.0, 2.0, 1.0]


# --- sample_from ---


def test_zero_temperature_is_greedy() -> None:
    sampler = TorchSampler(seed=0)

    token_id, mu = sampler.sample_from(torch.tensor([0.1, 3.0, 0.2]), None, _params(temperature=0.0))

    assert token_id == 1
    assert mu is None


def test_top_k_one_is_deterministic() -> None:
    sampler = TorchSampler(seed=0)
    params = _params(temperature=0.8, top_k=1)

    picks = {sampler.sample_from(torch.tensor([0.5, 0.1, 4.0, 1.0]), None, params)[0] for _ in range(10)}

    assert picks == {2}


def test_seeded_samplers_agree() -> None:
    logits = torch.tensor([1.0, 1.1, 0.9, 1.05])
    params = _params(temperature=1.0, top_k=0, top_p=1.0, min_p=0.0)

    first = TorchSampler(seed=7).sample_from(logits, None, params)[0]
    second = TorchSampler(seed=7).sample_from(logits, None, params)[0]

    assert first == second


@pytest.mark.parametrize("version", [1, 2])
def test_mirostat_initializes_and_updates_mu(version: int) -> None:
    sampler = TorchSampler(seed=0)
    params = _params(temperature=1.0, mirostat=version, mirostat_tau=5.0, mirostat_eta=0.1)
    logits = torch.zeros(32)
    logits[0] = 10.0

    token_id, mu = sampler.sample_from(logits, None, params)

    assert token_id == 0
    assert mu is not None and math.isfinite(mu)
    # Starts at 2 * tau and rises because the pick was unsurprising
    assert mu > 10.0


def test_mirostat_threads_previous_mu() -> None:
    sampler = TorchSampler(seed=0)
    params = _params(temperature=1.0, mirostat=2, mirostat_tau=5.0, mirostat_eta=0.5)
    logits = torch.tensor([10.0, 0.0, 0.0, 0.0])

    token_id, mu = sampler.sample_from(logits, 3.0, params)

    assert token_id == 0
    # Surprise of the dominant token is ~0, so mu rises by about eta * tau
    assert mu == pytest.approx(3.0 + 0.5 * 5.0, abs=0.01)
