"""Engine contracts consumed by the session controller."""

from .embeddings import EmbeddingHandle, EmbeddingProvider
from .base import AdvanceResult, BaseEngine, DecodeStatus, SpecialTokens

__all__ = [
    "AdvanceResult",
    "BaseEngine",
    "DecodeStatus",
    "SpecialTokens",
    "EmbeddingHandle",
    "EmbeddingProvider",
]
