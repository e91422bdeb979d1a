"""Model weight loading."""

from .backend import WeightsBackend
from .params import LoraAdapter, ModelParams, ModelStats, ProgressCallback
from .weights import ModelWeights, load_weights, load_weights_async

__all__ = [
    "LoraAdapter",
    "ModelParams",
    "ModelStats",
    "ModelWeights",
    "ProgressCallback",
    "WeightsBackend",
    "load_weights",
    "load_weights_async",
]
