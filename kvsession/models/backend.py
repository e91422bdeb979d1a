"""Native weight loader contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .params import ModelStats, ProgressCallback


class WeightsBackend(ABC):
    """Loads base weights and applies adapters.

    ``load_from_file`` must raise LoadWeightsFailedError when the progress
    callback returns False or the file cannot be loaded.
    """

    @abstractmethod
    def load_from_file(self, model_path: str, progress_callback: ProgressCallback | None) -> Any:
        """Load base weights and return an opaque model handle."""

    @abstractmethod
    def apply_lora(self, handle: Any, adapter_path: str, scale: float, lora_base: str | None) -> None:
        """Apply one LoRA adapter to ``handle``."""

    @abstractmethod
    def dispose(self, handle: Any) -> None:
        """Free the native model behind ``handle``."""

    def read_metadata(self, handle: Any) -> dict[str, str]:
        return {}

    def read_stats(self, handle: Any) -> ModelStats:
        return ModelStats()


__all__ = ["WeightsBackend"]
