"""Session cache prefix matching.

A session cache holds the tokens that were resident when it was saved. If a
new prompt starts with the same tokens, the engine cache restored alongside
it already holds them and they can be skipped.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum


class MatchQuality(str, Enum):
    """How much of a fresh prompt a saved session cache covers."""

    NONE = "none"
    LOW = "low"
    PARTIAL = "partial"
    EXACT = "exact"


def matched_length(saved: Sequence[int], fresh: Sequence[int]) -> int:
    """Length of the common prefix of ``saved`` and ``fresh``.

    Bounded by ``min(len(saved), len(fresh)) - 1`` so the engine always
    evaluates at least one token and refreshes its logits.
    """
    bound = min(len(saved), len(fresh)) - 1
    matched = 0
    while matched < bound and saved[matched] == fresh[matched]:
        matched += 1
    return matched


def describe_match(matched: int, input_length: int) -> MatchQuality:
    """Classify a match for logging; every prompt token but the reserved one is exact."""
    if matched <= 0 or input_length <= 0:
        return MatchQuality.NONE
    if matched + 1 >= input_length:
        return MatchQuality.EXACT
    if matched < input_length // 2:
        return MatchQuality.LOW
    return MatchQuality.PARTIAL


__all__ = ["MatchQuality", "describe_match", "matched_length"]
