"""Split prompt text around an image placeholder.

    "Describe <image> briefly"  ->  tokens("Describe ") + tokens(" briefly")
                                     ^ insertion position = len(tokens("Describe "))

Only the first placeholder is spliced; any later one stays literal text.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ..engines.embeddings import EmbeddingHandle
from ..state.embedding import EmbeddingInsertion
from ..tokens.base import BaseTokenizer


@dataclass(slots=True)
class SpliceResult:
    """Token stream for one input plus where embeddings go in it."""

    tokens: list[int]
    insertions: list[EmbeddingInsertion] = field(default_factory=list)
    boundary: int | None = None


def splice(
    text: str,
    marker: str,
    tokenizer: BaseTokenizer,
    *,
    add_sentinel: bool,
    handles: Sequence[EmbeddingHandle] = (),
    offset: int = 0,
) -> SpliceResult:
    """Tokenize ``text`` around the first ``marker``.

    Args:
        text: Raw input text.
        marker: Placeholder to split on.
        tokenizer: Tokenizer for both segments.
        add_sentinel: Whether the leading segment gets the sentinel token.
            The trailing segment never does.
        handles: Embeddings to insert at the placeholder, in order.
        offset: Absolute index of the first returned token in the session's
            input, so insertion positions index ``input_tokens`` directly.

    Returns:
        SpliceResult with the concatenated tokens, one insertion per handle,
        and the relative boundary (None when no marker was found).
    """
    index = text.find(marker) if marker else -1
    if index < 0:
        return SpliceResult(tokens=tokenizer.tokenize(text, add_sentinel=add_sentinel))

    before = tokenizer.tokenize(text[:index], add_sentinel=add_sentinel)
    after = tokenizer.tokenize(text[index + len(marker):], add_sentinel=False)
    position = offset + len(before)
    return SpliceResult(
        tokens=before + after,
        insertions=[EmbeddingInsertion(position=position, handle=handle) for handle in handles],
        boundary=len(before),
    )


__all__ = ["SpliceResult", "splice"]
