"""Weight loading parameters."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

# Receives load progress in [0, 1]; returning False asks the backend to abort
ProgressCallback = Callable[[float], bool]


@dataclass(slots=True, frozen=True)
class LoraAdapter:
    path: str
    scale: float = 1.0

    @property
    def usable(self) -> bool:
        return bool(self.path) and self.scale > 0


@dataclass(slots=True, frozen=True)
class ModelStats:
    """Shape of loaded weights as reported by the backend (0 when unknown)."""

    vocab_count: int = 0
    context_size: int = 0
    embedding_size: int = 0
    parameter_count: int = 0
    size_bytes: int = 0


@dataclass
class ModelParams:
    """What to load.

    Attributes:
        model_path: Weights file handed to the backend.
        lora_adapters: Adapters applied in order after the base weights.
        lora_base: Optional higher-precision base used while applying adapters.
        progress_callback: Caller progress hook; returning False aborts.
    """

    model_path: str
    lora_adapters: list[LoraAdapter] = field(default_factory=list)
    lora_base: str | None = None
    progress_callback: ProgressCallback | None = None


__all__ = ["LoraAdapter", "ModelParams", "ModelStats", "ProgressCallback"]
