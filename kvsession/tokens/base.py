"""Narrow tokenizer contract used by the generation loop and the splicer."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseTokenizer(ABC):
    """Text <-> token id conversion used by the generation loop."""

    @property
    @abstractmethod
    def sentinel_id(self) -> int | None:
        """Id of the leading sentinel (BOS) token, or None if the model has none."""

    @abstractmethod
    def encode_ids(self, text: str, *, special: bool = True) -> list[int]:
        """Return token ids for ``text`` without any sentinel."""

    @abstractmethod
    def decode(self, ids: list[int]) -> str:
        """Return the text for ``ids``, keeping special tokens."""

    def tokenize(self, text: str, add_sentinel: bool = False, special: bool = True) -> list[int]:
        """Tokenize ``text``, prepending the sentinel when requested and known."""
        ids = self.encode_ids(text, special=special) if text else []
        sentinel = self.sentinel_id
        if add_sentinel and sentinel is not None:
            return [sentinel, *ids]
        return ids

    def count(self, text: str) -> int:
        return len(self.encode_ids(text)) if text else 0


__all__ = ["BaseTokenizer"]
