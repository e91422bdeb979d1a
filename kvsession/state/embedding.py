"""Insertion records for out-of-band embeddings."""

from __future__ import annotations

from dataclasses import dataclass

from ..engines.embeddings import EmbeddingHandle


@dataclass(slots=True, frozen=True)
class EmbeddingInsertion:
    """An embedding to evaluate right before ``input_tokens[position]``.

    Several records may share a position; they are evaluated in order.
    """

    position: int
    handle: EmbeddingHandle


def pending_in_range(
    insertions: list[EmbeddingInsertion],
    start: int,
    end: int,
) -> list[EmbeddingInsertion]:
    """Records whose position falls in ``[start, end]``, in order."""
    return [record for record in insertions if start <= record.position <= end]


__all__ = ["EmbeddingInsertion", "pending_in_range"]
