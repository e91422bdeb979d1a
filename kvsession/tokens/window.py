"""Fixed-capacity window over the most recent tokens.

The window feeds repetition penalties and stop-string detection. Its
capacity is part of persisted state so a restored window evicts exactly
like the original.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseTokenizer


class RecentTokenWindow:
    """Ring buffer of token ids; the oldest id drops out once full."""

    def __init__(self, capacity: int, tokens: Iterable[int] = ()) -> None:
        if capacity < 0:
            raise ValueError(f"window capacity must be >= 0, got {capacity}")
        self._tokens: deque[int] = deque(tokens, maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._tokens.maxlen or 0

    def enqueue(self, token_id: int) -> None:
        self._tokens.append(token_id)

    def extend(self, token_ids: Iterable[int]) -> None:
        self._tokens.extend(token_ids)

    def to_list(self) -> list[int]:
        return list(self._tokens)

    def tail(self, count: int) -> list[int]:
        if count <= 0:
            return []
        return list(self._tokens)[-count:]

    def ends_with_any(self, stop_strings: Iterable[str] | None, tokenizer: BaseTokenizer) -> bool:
        """Return True if the decoded tail of the window ends with a stop string.

        The tail starts at as many tokens as the longest stop string has
        characters and widens while special tokens decode to less text than
        that, up to the whole window.
        """
        candidates = [s for s in (stop_strings or ()) if s]
        if not candidates or not self._tokens:
            return False
        longest = max(len(s) for s in candidates)
        count = longest
        text = tokenizer.decode(self.tail(count))
        while len(text) < longest and count < len(self._tokens):
            count += longest
            text = tokenizer.decode(self.tail(count))
        return any(text.endswith(s) for s in candidates)

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[int]:
        return iter(self._tokens)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecentTokenWindow):
            return NotImplemented
        return self.capacity == other.capacity and list(self._tokens) == list(other._tokens)

    def __repr__(self) -> str:
        return f"RecentTokenWindow(capacity={self.capacity}, tokens={list(self._tokens)!r})"


__all__ = ["RecentTokenWindow"]
