"""Penalty-then-sample contract.

Used when a call configures no sampling pipeline. The adaptive state
(mirostat mu) is threaded through the caller's session state instead of
living in the sampler.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .params import InferenceParams


class ManualSampler(ABC):
    """Penalize step followed by a sample step."""

    @abstractmethod
    def penalize(
        self,
        logits: Any,
        recent_tokens: Sequence[int],
        params: InferenceParams,
        *,
        newline_id: int | None,
        context_size: int,
    ) -> Any:
        """Apply logit bias and repetition penalties; return the adjusted distribution."""

    @abstractmethod
    def sample_from(
        self,
        distribution: Any,
        mu: float | None,
        params: InferenceParams,
    ) -> tuple[int, float | None]:
        """Pick a token from ``distribution``; return it with the updated mu."""


__all__ = ["ManualSampler"]
