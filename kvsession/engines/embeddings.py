"""Out-of-band embedding contract for multimodal sessions.

An embedding provider turns raw image bytes into an opaque handle and later
evaluates that handle straight into the engine cache, advancing the engine
position by however many positions the embedding occupies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

EmbeddingHandle = Any


class EmbeddingProvider(ABC):
    """Creates and evaluates non-text embeddings against one engine."""

    @abstractmethod
    def create_from_image(self, image: bytes) -> EmbeddingHandle:
        """Compute an embedding handle from raw image bytes."""

    @abstractmethod
    async def evaluate(self, handle: EmbeddingHandle, position: int) -> int:
        """Write ``handle`` into the engine cache at ``position``.

        Returns:
            The engine position after the embedding.
        """

    def release(self, handle: EmbeddingHandle) -> None:
        """Free native resources held by ``handle``."""
        return None


__all__ = ["EmbeddingHandle", "EmbeddingProvider"]
