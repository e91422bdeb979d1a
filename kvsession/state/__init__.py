"""State containers owned by one conversation."""

from .session import SessionState
from .loop import LoopControlState, LoopPhase
from .embedding import EmbeddingInsertion, pending_in_range

__all__ = [
    "SessionState",
    "LoopControlState",
    "LoopPhase",
    "EmbeddingInsertion",
    "pending_in_range",
]
