"""Cancellable model weight loading.

The backend does the actual loading; this module owns the policy around it:
which LoRA adapters are applied, how cancellation is observed, and how a
failure caused by cancellation is reported.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterable
from typing import Any

from ..errors import LoadCancelledError, LoadWeightsFailedError, ModelResourceError
from .backend import WeightsBackend
from .params import LoraAdapter, ModelParams, ModelStats

logger = logging.getLogger(__name__)


class ModelWeights:
    """Loaded weights; dispose explicitly or use as a context manager."""

    def __init__(self, handle: Any, backend: WeightsBackend) -> None:
        self.handle = handle
        self._backend = backend
        self.metadata: dict[str, str] = dict(backend.read_metadata(handle))
        self.stats: ModelStats = backend.read_stats(handle)
        self._disposed = False

    @property
    def vocab_count(self) -> int:
        return self.stats.vocab_count

    @property
    def context_size(self) -> int:
        """Context length the model was trained with."""
        return self.stats.context_size

    @property
    def embedding_size(self) -> int:
        return self.stats.embedding_size

    @property
    def parameter_count(self) -> int:
        return self.stats.parameter_count

    @property
    def size_bytes(self) -> int:
        return self.stats.size_bytes

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._backend.dispose(self.handle)

    def __enter__(self) -> ModelWeights:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


def _dispose_orphan(future: asyncio.Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    weights = future.result()
    logger.info("weights: disposing model loaded after cancellation")
    weights.dispose()


def _check_params(params: ModelParams) -> None:
    if not params.model_path:
        raise ModelResourceError("model_path is required to load weights")


def _apply_adapters(
    backend: WeightsBackend,
    handle: Any,
    adapters: Iterable[LoraAdapter],
    lora_base: str | None,
    cancel: threading.Event | None = None,
) -> None:
    for adapter in adapters:
        if cancel is not None and cancel.is_set():
            raise LoadCancelledError("weight loading cancelled while applying adapters")
        if not adapter.usable:
            logger.debug("weights: skipping adapter path=%r scale=%s", adapter.path, adapter.scale)
            continue
        backend.apply_lora(handle, adapter.path, adapter.scale, lora_base)
        logger.info("weights: applied adapter path=%s scale=%s", adapter.path, adapter.scale)


def load_weights(params: ModelParams, backend: WeightsBackend) -> ModelWeights:
    """Load weights and apply usable adapters on the calling thread."""
    _check_params(params)
    logger.info("weights: loading %s adapters=%d", params.model_path, len(params.lora_adapters))
    handle = backend.load_from_file(params.model_path, params.progress_callback)
    try:
        _apply_adapters(backend, handle, params.lora_adapters, params.lora_base)
    except BaseException:
        backend.dispose(handle)
        raise
    return ModelWeights(handle, backend)


async def load_weights_async(
    params: ModelParams,
    backend: WeightsBackend,
    cancel: threading.Event | None = None,
) -> ModelWeights:
    """Load weights in a worker thread, honouring ``cancel``.

    ``cancel`` is polled by the progress callback during the base load and
    before every adapter. Cancelling the awaiting task also sets it.

    Raises:
        LoadCancelledError: Cancellation was requested, including when the
            backend failed because the progress callback asked it to stop.
        LoadWeightsFailedError: The backend failed for another reason.
    """
    _check_params(params)
    cancel = cancel or threading.Event()

    # Params may be mutated by the caller while the worker runs
    model_path = params.model_path
    lora_base = params.lora_base
    adapters = tuple(params.lora_adapters)
    user_callback = params.progress_callback

    def progress(fraction: float) -> bool:
        if user_callback is not None and not user_callback(fraction):
            return False
        return not cancel.is_set()

    def load() -> ModelWeights:
        try:
            handle = backend.load_from_file(model_path, progress)
            try:
                _apply_adapters(backend, handle, adapters, lora_base, cancel)
            except BaseException:
                backend.dispose(handle)
                raise
            return ModelWeights(handle, backend)
        except LoadWeightsFailedError as exc:
            if cancel.is_set():
                raise LoadCancelledError(f"loading {model_path} was cancelled") from exc
            raise

    if cancel.is_set():
        raise LoadCancelledError(f"loading {model_path} was cancelled before it started")

    logger.info("weights: loading %s adapters=%d", model_path, len(adapters))
    worker = asyncio.ensure_future(asyncio.to_thread(load))
    try:
        weights = await asyncio.shield(worker)
    except asyncio.CancelledError:
        cancel.set()
        # The worker may still finish; nobody else will own what it returns
        worker.add_done_callback(_dispose_orphan)
        raise
    logger.info("weights: loaded %s metadata_keys=%d", model_path, len(weights.metadata))
    return weights


__all__ = [
    "ModelWeights",
    "load_weights",
    "load_weights_async",
]
