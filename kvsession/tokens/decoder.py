"""Incremental detokenization for streamed output."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseTokenizer

_REPLACEMENT_CHAR = "\ufffd"


class StreamingTokenDecoder:
    """Turns a growing token stream into text deltas.

    Byte-level tokenizers can split one character across several tokens;
    a delta that ends in a replacement character is held back until the
    following token completes it.

    Only the segment emitted last is kept as decoding context, so the buffer
    stays bounded however long the stream runs:

        ids = [ ...last emitted... | ...not yet emitted... ]
                                   ^ read offset
    """

    def __init__(self, tokenizer: BaseTokenizer) -> None:
        self._tokenizer = tokenizer
        self._ids: list[int] = []
        self._read_offset = 0

    @property
    def buffered(self) -> int:
        """Token ids currently held for context or pending emission."""
        return len(self._ids)

    def add(self, token_ids: Iterable[int]) -> None:
        self._ids.extend(token_ids)

    def read(self) -> str:
        prefix = self._tokenizer.decode(self._ids[: self._read_offset])
        text = self._tokenizer.decode(self._ids)
        if len(text) <= len(prefix) or text.endswith(_REPLACEMENT_CHAR):
            return ""
        delta = text[len(prefix):]
        # The segment just emitted becomes the context for the next delta
        del self._ids[: self._read_offset]
        self._read_offset = len(self._ids)
        return delta

    def reset(self) -> None:
        self._ids.clear()
        self._read_offset = 0


__all__ = ["StreamingTokenDecoder"]
