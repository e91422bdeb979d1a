"""Public API for token utilities."""

from .window import RecentTokenWindow
from .decoder import StreamingTokenDecoder
from .base import BaseTokenizer
from .tokenizer import FastTokenizer

__all__ = [
    "BaseTokenizer",
    "FastTokenizer",
    "RecentTokenWindow",
    "StreamingTokenDecoder",
]
