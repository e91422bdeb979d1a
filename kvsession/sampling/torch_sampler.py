"""Torch implementation of the penalty-then-sample fallback."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import torch

from ..config import MIROSTAT_M, SAMPLING_SEED
from .manual import ManualSampler
from .params import InferenceParams


class TorchSampler(ManualSampler):
    """Repetition penalties, top-k/top-p/min-p filtering, and mirostat v1/v2."""

    def __init__(self, seed: int | None = None) -> None:
        self._generator = torch.Generator()
        if seed is None and SAMPLING_SEED:
            seed = int(SAMPLING_SEED)
        if seed is not None:
            self._generator.manual_seed(seed)

    def penalize(
        self,
        logits: Any,
        recent_tokens: Sequence[int],
        params: InferenceParams,
        *,
        newline_id: int | None,
        context_size: int,
    ) -> torch.Tensor:
        scores = torch.as_tensor(logits, dtype=torch.float32).flatten().clone()
        for token_id, bias in params.logit_bias.items():
            scores[token_id] += bias

        window = params.repeat_last_n if params.repeat_last_n >= 0 else context_size
        recent = list(recent_tokens)[-window:] if window > 0 else []
        if not recent:
            return scores

        saved_nl = None
        if newline_id is not None and not params.penalize_nl:
            saved_nl = scores[newline_id].clone()

        ids, counts = torch.unique(torch.tensor(recent, dtype=torch.long), return_counts=True)
        selected = scores[ids]
        if params.repeat_penalty != 1.0:
            selected = torch.where(
                selected > 0,
                selected / params.repeat_penalty,
                selected * params.repeat_penalty,
            )
        selected = selected - counts.to(torch.float32) * params.frequency_penalty - params.presence_penalty
        scores[ids] = selected

        if saved_nl is not None:
            scores[newline_id] = saved_nl
        return scores

    def sample_from(
        self,
        distribution: Any,
        mu: float | None,
        params: InferenceParams,
    ) -> tuple[int, float | None]:
        scores = torch.as_tensor(distribution, dtype=torch.float32).flatten()
        if params.temperature <= 0:
            return int(torch.argmax(scores).item()), mu
        if params.mirostat == 1:
            return self._mirostat_v1(scores, mu, params)
        if params.mirostat == 2:
            return self._mirostat_v2(scores, mu, params)
        return self._filtered(scores, params), mu

    def _filtered(self, scores: torch.Tensor, params: InferenceParams) -> int:
        if 0 < params.top_k < scores.numel():
            values, indices = torch.topk(scores, params.top_k)
        else:
            values, indices = torch.sort(scores, descending=True)

        if params.top_p < 1.0:
            probs = torch.softmax(values, dim=-1)
            # Keep the smallest head whose mass reaches top_p
            keep = (torch.cumsum(probs, dim=-1) - probs) < params.top_p
            keep[0] = True
            values, indices = values[keep], indices[keep]

        if params.min_p > 0.0:
            probs = torch.softmax(values, dim=-1)
            keep = probs >= params.min_p * probs[0]
            keep[0] = True
            values, indices = values[keep], indices[keep]

        probs = torch.softmax(values / params.temperature, dim=-1)
        choice = torch.multinomial(probs, 1, generator=self._generator).item()
        return int(indices[choice].item())

    def _mirostat_v1(
        self,
        scores: torch.Tensor,
        mu: float | None,
        params: InferenceParams,
    ) -> tuple[int, float]:
        tau, eta = params.mirostat_tau, params.mirostat_eta
        mu = 2.0 * tau if mu is None else mu
        values, indices = torch.sort(scores / params.temperature, descending=True)
        probs = torch.softmax(values, dim=-1)
        n_vocab = probs.numel()

        # Estimate the Zipf exponent from the head of the distribution
        m = min(MIROSTAT_M, n_vocab) - 1
        k = n_vocab
        if m > 0:
            i = torch.arange(m, dtype=torch.float32)
            t = torch.log((i + 2) / (i + 1))
            b = torch.log(probs[:m] / probs[1 : m + 1])
            s_hat = float((t * b).sum() / (t * t).sum())
            epsilon = s_hat - 1
            if math.isfinite(s_hat) and s_hat > 0 and epsilon != 0:
                estimate = ((epsilon * 2**mu) / (1 - n_vocab ** (-epsilon))) ** (1 / s_hat)
                if math.isfinite(estimate):
                    k = int(min(max(estimate, 1.0), n_vocab))

        head = torch.softmax(values[:k], dim=-1)
        choice = torch.multinomial(head, 1, generator=self._generator).item()
        observed = -math.log2(float(head[choice]))
        return int(indices[choice].item()), mu - eta * (observed - tau)

    def _mirostat_v2(
        self,
        scores: torch.Tensor,
        mu: float | None,
        params: InferenceParams,
    ) -> tuple[int, float]:
        tau, eta = params.mirostat_tau, params.mirostat_eta
        mu = 2.0 * tau if mu is None else mu
        values, indices = torch.sort(scores / params.temperature, descending=True)
        probs = torch.softmax(values, dim=-1)

        keep = -torch.log2(probs) <= mu
        keep[0] = True
        values, indices = values[keep], indices[keep]

        head = torch.softmax(values, dim=-1)
        choice = torch.multinomial(head, 1, generator=self._generator).item()
        observed = -math.log2(float(head[choice]))
        return int(indices[choice].item()), mu - eta * (observed - tau)


__all__ = ["TorchSampler"]
