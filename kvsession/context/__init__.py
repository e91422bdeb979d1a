"""Context management: overflow shifting, prefix reuse, embedding splicing."""

from .splice import SpliceResult, splice
from .prefix import MatchQuality, describe_match, matched_length
from .shift import ContextWindowController, ShiftOutcome, resolve_keep_count

__all__ = [
    "ContextWindowController",
    "ShiftOutcome",
    "resolve_keep_count",
    "MatchQuality",
    "describe_match",
    "matched_length",
    "SpliceResult",
    "splice",
]
