"""Sampling contracts and the built-in torch sampler."""

from .params import InferenceParams
from .torch_sampler import TorchSampler
from .manual import ManualSampler
from .pipeline import SamplingPipeline

__all__ = [
    "InferenceParams",
    "ManualSampler",
    "SamplingPipeline",
    "TorchSampler",
]
