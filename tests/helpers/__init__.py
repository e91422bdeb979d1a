"""Fakes shared by the unit tests (engine, embeddings, tokenizer, sampler, weights)."""

__all__ = [
    "embeddings",
    "engine",
    "executor",
    "sampling",
    "stream",
    "tokenizer",
    "weights",
]
