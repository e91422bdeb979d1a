"""Abstract base class for the inference engine a session drives.

The engine owns the compute and the key/value cache; the session owns the
bookkeeping. Every cache mutation (advance, drop, shift, clear) for one
conversation is issued from a single executor, one call at a time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any


class DecodeStatus(str, Enum):
    """Outcome of an engine advance call."""

    OK = "ok"
    NO_CACHE_SLOT = "no_cache_slot"
    INVALID_BATCH = "invalid_batch"
    COMPUTE_FAILED = "compute_failed"

    @property
    def ok(self) -> bool:
        return self is DecodeStatus.OK


@dataclass(slots=True, frozen=True)
class AdvanceResult:
    """Named result of ``BaseEngine.advance``.

    ``new_position`` is authoritative even on failure: the caller never
    infers how far the engine got.
    """

    status: DecodeStatus
    batch_size: int
    new_position: int


@dataclass(slots=True, frozen=True)
class SpecialTokens:
    """Model-specific token ids the generation loop reacts to.

    Attributes:
        eos_id: End-of-sequence token.
        newline_id: Token substituted for EOS in interactive mode; None if the
            model has none, in which case EOS ends the turn.
        sentinel_id: Leading BOS token, if any.
        add_sentinel: Whether the model family expects the sentinel to stay
            at the front of the context.
    """

    eos_id: int
    newline_id: int | None = None
    sentinel_id: int | None = None
    add_sentinel: bool = False


class BaseEngine(ABC):
    """Abstract inference engine with a positional token cache."""

    @property
    @abstractmethod
    def context_size(self) -> int:
        """Maximum number of resident token positions."""

    @property
    @abstractmethod
    def batch_size(self) -> int:
        """Maximum number of tokens accepted by one advance call."""

    @property
    @abstractmethod
    def special_tokens(self) -> SpecialTokens:
        """Special token ids for the loaded model."""

    @abstractmethod
    async def advance(
        self,
        tokens: Sequence[int],
        sequence_id: int,
        start_position: int,
    ) -> AdvanceResult:
        """Evaluate ``tokens`` at ``start_position`` and make them resident.

        Args:
            tokens: Token ids to evaluate, in order.
            sequence_id: Cache sequence the tokens belong to.
            start_position: Position of the first token.

        Returns:
            AdvanceResult with the status and the engine's new position.
        """

    @abstractmethod
    def drop_range(self, sequence_id: int, start: int, end: int) -> bool:
        """Remove cache cells for positions ``[start, end)``; ``end < 0`` means to the end."""

    @abstractmethod
    def shift_range(self, sequence_id: int, start: int, end: int, delta: int) -> None:
        """Add ``delta`` to the positions of cells in ``[start, end)``."""

    @abstractmethod
    def clear_all(self) -> None:
        """Drop every cache cell for every sequence."""

    @abstractmethod
    def count_resident_cells(self) -> int:
        """Number of occupied cache cells."""

    @abstractmethod
    def logits_for_last_position(self) -> Any:
        """Logits of the last token evaluated by the most recent advance."""

    def refresh_after_drop(self) -> None:
        """Apply pending cache shifts. Engines that shift eagerly need nothing here."""
        return None

    @property
    def supports_cache_persistence(self) -> bool:
        """Whether the engine can write and read its cache cells to disk."""
        return False

    def save_cache(self, path: str, tokens: Sequence[int]) -> bool:
        """Persist cache cells for ``tokens``. Returns False if unsupported."""
        return False

    def load_cache(self, path: str) -> bool:
        """Restore cache cells written by ``save_cache``. Returns False if unsupported."""
        return False


__all__ = [
    "AdvanceResult",
    "BaseEngine",
    "DecodeStatus",
    "SpecialTokens",
]
