"""Weights backend double recording load, adapter and dispose calls."""

from __future__ import annotations

import threading
from typing import Any

from kvsession.errors import LoadWeightsFailedError
from kvsession.models import ModelStats, ProgressCallback, WeightsBackend


class FakeWeightsBackend(WeightsBackend):
    """Reports progress in ``steps`` increments and fails like a native loader.

    ``on_adapter`` runs before each adapter is applied, so a test can flip
    cancellation at a precise point. With ``hold`` set, loading blocks after
    the last progress report until the event fires.
    """

    def __init__(
        self,
        *,
        steps: int = 4,
        fail: bool = False,
        metadata: dict[str, str] | None = None,
        stats: ModelStats | None = None,
        hold: threading.Event | None = None,
    ) -> None:
        self._steps = steps
        self._fail = fail
        self._metadata = dict(metadata or {})
        self._stats = stats or ModelStats()
        self._hold = hold
        self.progress: list[float] = []
        self.applied: list[tuple[str, float, str | None]] = []
        self.disposed: list[Any] = []
        self.on_adapter: Any = None
        self.load_started = threading.Event()
        self.holding = threading.Event()

    def load_from_file(self, model_path: str, progress_callback: ProgressCallback | None) -> Any:
        self.load_started.set()
        for step in range(1, self._steps + 1):
            fraction = step / self._steps
            self.progress.append(fraction)
            if progress_callback is not None and not progress_callback(fraction):
                raise LoadWeightsFailedError(model_path, "aborted by progress callback")
        if self._fail:
            raise LoadWeightsFailedError(model_path, "corrupt file")
        if self._hold is not None:
            self.holding.set()
            self._hold.wait()
        return {"path": model_path}

    def apply_lora(self, handle: Any, adapter_path: str, scale: float, lora_base: str | None) -> None:
        if self.on_adapter is not None:
            self.on_adapter(adapter_path)
        self.applied.append((adapter_path, scale, lora_base))

    def dispose(self, handle: Any) -> None:
        self.disposed.append(handle)

    def read_metadata(self, handle: Any) -> dict[str, str]:
        return self._metadata

    def read_stats(self, handle: Any) -> ModelStats:
        return self._stats
