"""Per-call inference parameters."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import (
    MAX_TOKENS,
    STOP_STRINGS,
    TEMPERATURE,
    TOP_K,
    TOP_P,
    MIN_P,
    REPEAT_LAST_N,
    REPEAT_PENALTY,
    FREQUENCY_PENALTY,
    PRESENCE_PENALTY,
    PENALIZE_NL,
    MIROSTAT,
    MIROSTAT_TAU,
    MIROSTAT_ETA,
)
from ..errors import ValidationError
from .pipeline import SamplingPipeline


@dataclass
class InferenceParams:
    """Knobs for one ``infer`` call.

    Attributes:
        tokens_keep: Leading input tokens preserved by a context shift.
            None keeps the whole input.
        max_tokens: Tokens generated before pausing for input (-1 = unlimited).
        stop_strings: Output suffixes that hand control back to the caller.
            The first one is also forced after an end-of-sequence token.
        logit_bias: Additive bias per token id.
        sampling_pipeline: Replaces the built-in penalty/sampling steps.
    """

    tokens_keep: int | None = None
    max_tokens: int = MAX_TOKENS
    stop_strings: list[str] = field(default_factory=lambda: list(STOP_STRINGS))
    logit_bias: dict[int, float] = field(default_factory=dict)

    repeat_last_n: int = REPEAT_LAST_N
    repeat_penalty: float = REPEAT_PENALTY
    frequency_penalty: float = FREQUENCY_PENALTY
    presence_penalty: float = PRESENCE_PENALTY
    penalize_nl: bool = PENALIZE_NL

    temperature: float = TEMPERATURE
    top_k: int = TOP_K
    top_p: float = TOP_P
    min_p: float = MIN_P

    mirostat: int = MIROSTAT
    mirostat_tau: float = MIROSTAT_TAU
    mirostat_eta: float = MIROSTAT_ETA

    sampling_pipeline: SamplingPipeline | None = None

    def validate(self) -> None:
        """Raise ValidationError for values no sampler can honour."""
        if self.max_tokens < -1:
            raise ValidationError("invalid_max_tokens", f"max_tokens must be >= -1, got {self.max_tokens}")
        if self.temperature < 0:
            raise ValidationError("invalid_temperature", f"temperature must be >= 0, got {self.temperature}")
        if self.top_k < 0:
            raise ValidationError("invalid_top_k", f"top_k must be >= 0, got {self.top_k}")
        if not 0.0 < self.top_p <= 1.0:
            raise ValidationError("invalid_top_p", f"top_p must be in (0, 1], got {self.top_p}")
        if not 0.0 <= self.min_p <= 1.0:
            raise ValidationError("invalid_min_p", f"min_p must be in [0, 1], got {self.min_p}")
        if self.repeat_penalty <= 0:
            raise ValidationError(
                "invalid_repeat_penalty",
                f"repeat_penalty must be > 0, got {self.repeat_penalty}",
            )
        if self.mirostat not in (0, 1, 2):
            raise ValidationError("invalid_mirostat", f"mirostat must be 0, 1 or 2, got {self.mirostat}")


__all__ = ["InferenceParams"]
