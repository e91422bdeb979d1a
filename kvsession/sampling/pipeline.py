"""Composed sampler contract.

A pipeline samples the next token from the logits of the last position,
then accepts the chosen id to update its own adaptive state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class SamplingPipeline(ABC):
    """Composed sampler owning its own adaptive state."""

    @abstractmethod
    def sample(self, logits: Any, recent_tokens: Sequence[int]) -> int:
        """Return the next token id."""

    @abstractmethod
    def accept(self, token_id: int) -> None:
        """Record ``token_id`` as chosen."""

    def reset(self) -> None:
        return None


__all__ = ["SamplingPipeline"]
