"""Session-scoped token bookkeeping.

SessionState holds everything needed to resume a conversation against an
engine whose cache mirrors it:

- input_tokens: full tokenized prompt plus every later input
- consumed_count: prefix of input_tokens already moved toward the engine
- resident_count: positions the engine cache currently holds
- recent_window: last N tokens, for penalties and stop strings
- cached_prefix_length: prefix confirmed identical to the loaded session cache
- pending_tokens: tokens queued for the next advance (an input batch or the
  token just sampled)
- sampler_aux: adaptive sampler state (mirostat mu)
- session_cache_path: where the session cache is saved, if anywhere

Invariants:
    consumed_count <= len(input_tokens)
    cached_prefix_length <= min(len(session_tokens), len(input_tokens))
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import CONTEXT_SIZE
from ..tokens.window import RecentTokenWindow


def _default_window() -> RecentTokenWindow:
    return RecentTokenWindow(CONTEXT_SIZE)


@dataclass
class SessionState:
    """Container for all mutable token state of one conversation.

    Attributes:
        input_tokens: Tokenized prompt and continuations.
        consumed_count: How many input tokens have been queued for the engine.
        resident_count: Token positions resident in the engine cache.
        recent_window: Ring of recently seen tokens.
        cached_prefix_length: Length of the session-cache prefix that matched
            the prompt and was reused instead of re-evaluated.
        pending_tokens: Tokens waiting for the next engine advance.
        sampler_aux: Mirostat mu, None until the sampler first needs it.
        session_cache_path: Session cache file, None when not saving.
        session_tokens: Token sequence mirrored into the session cache file.
        session_consumed: How many session_tokens are resident.
        prompt_run: True until the first prompt has been advanced.
    """

    input_tokens: list[int] = field(default_factory=list)
    consumed_count: int = 0
    resident_count: int = 0
    recent_window: RecentTokenWindow = field(default_factory=_default_window)
    cached_prefix_length: int = 0
    pending_tokens: list[int] = field(default_factory=list)
    sampler_aux: float | None = None
    session_cache_path: str | None = None
    session_tokens: list[int] = field(default_factory=list)
    session_consumed: int = 0
    prompt_run: bool = True

    @property
    def remaining_input(self) -> int:
        """Input tokens not yet queued for the engine."""
        return len(self.input_tokens) - self.consumed_count

    @property
    def input_consumed(self) -> bool:
        return self.consumed_count >= len(self.input_tokens)

    def check_invariants(self) -> list[str]:
        """Return a description of every violated invariant (empty when consistent)."""
        problems: list[str] = []
        if self.consumed_count < 0 or self.consumed_count > len(self.input_tokens):
            problems.append(
                f"consumed_count={self.consumed_count} outside [0, {len(self.input_tokens)}]"
            )
        if self.resident_count < 0:
            problems.append(f"resident_count={self.resident_count} is negative")
        bound = min(len(self.session_tokens), len(self.input_tokens))
        if self.cached_prefix_length < 0 or self.cached_prefix_length > bound:
            problems.append(f"cached_prefix_length={self.cached_prefix_length} outside [0, {bound}]")
        elif self.session_tokens[: self.cached_prefix_length] != self.input_tokens[: self.cached_prefix_length]:
            problems.append("cached prefix differs between session cache and input")
        if self.session_consumed < 0 or self.session_consumed > len(self.session_tokens):
            problems.append(
                f"session_consumed={self.session_consumed} outside [0, {len(self.session_tokens)}]"
            )
        return problems


__all__ = ["SessionState"]
