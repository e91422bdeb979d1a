"""Engine turn-level exceptions.

A failed engine advance abandons the current turn without touching the
token history. The conversation stays resumable: the next ``infer`` call
retries the tokens that were not advanced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engines.base import DecodeStatus


class TurnAbortedError(Exception):
    """Raised when a generation turn is abandoned but the session is intact."""


class EngineDecodeError(TurnAbortedError):
    """Raised when an engine advance call reports a non-success status.

    Attributes:
        status: The status reported by the engine.
        position: Engine position reported alongside the failure.
    """

    def __init__(self, status: DecodeStatus, position: int) -> None:
        super().__init__(f"engine advance failed with status={status.name} at position={position}")
        self.status = status
        self.position = position


__all__ = ["TurnAbortedError", "EngineDecodeError"]
