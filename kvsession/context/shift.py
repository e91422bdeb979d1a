"""Context window overflow handling.

When the resident tokens plus the next batch would not fit in the engine's
context, the controller evicts tokens directly after a kept prefix (the
system preamble, and the sentinel when the model needs it) and slides the
later cache positions down:

    before: [keep | discard | tail .........]  resident
    after:  [keep | tail .........]            resident - discard

Each round discards half of what lies beyond the kept prefix; rounds repeat
until the next batch fits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import DEFAULT_SEQUENCE_ID, SHIFT_MAX_ITERATIONS
from ..engines.base import BaseEngine
from ..errors import ContextConfigError
from ..state.session import SessionState
from ..telemetry.sentry import add_breadcrumb

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ShiftOutcome:
    """What a ``shift_if_needed`` call did."""

    rounds: int
    discarded: int
    keep: int

    @property
    def shifted(self) -> bool:
        return self.rounds > 0


def resolve_keep_count(tokens_keep: int | None, input_length: int, add_sentinel: bool) -> int:
    """Resolve how many leading tokens survive a shift.

    ``None``, negative, or out-of-range values keep the whole input. An
    explicit in-range count gains one slot for the sentinel when the model
    needs it to stay resident.
    """
    if tokens_keep is None or tokens_keep < 0 or tokens_keep > input_length:
        return input_length
    return tokens_keep + int(add_sentinel)


class ContextWindowController:
    """Keeps ``resident + pending <= capacity`` before every engine advance."""

    def __init__(
        self,
        engine: BaseEngine,
        *,
        sequence_id: int = DEFAULT_SEQUENCE_ID,
        max_iterations: int = SHIFT_MAX_ITERATIONS,
    ) -> None:
        self._engine = engine
        self._sequence_id = sequence_id
        self._max_iterations = max_iterations

    @property
    def capacity(self) -> int:
        return self._engine.context_size

    def needs_shift(self, state: SessionState, pending_count: int) -> bool:
        return state.resident_count + pending_count > self.capacity

    def shift_if_needed(
        self,
        state: SessionState,
        tokens_keep: int | None,
        pending_count: int,
    ) -> ShiftOutcome:
        """Shift the context until ``pending_count`` more tokens fit.

        A no-op when there is no overflow, so it is safe to call before every
        advance.

        Raises:
            ContextConfigError: If the kept prefix plus the pending batch can
                never fit, or the shift does not converge.
        """
        if not self.needs_shift(state, pending_count):
            return ShiftOutcome(rounds=0, discarded=0, keep=0)

        capacity = self.capacity
        keep = resolve_keep_count(
            tokens_keep,
            len(state.input_tokens),
            self._engine.special_tokens.add_sentinel,
        )
        keep = min(keep, state.resident_count)
        if keep >= capacity:
            raise ContextConfigError(
                f"context capacity {capacity} cannot hold the kept prefix of {keep} tokens"
            )
        if keep + pending_count > capacity:
            raise ContextConfigError(
                f"context capacity {capacity} cannot hold the kept prefix of {keep} tokens "
                f"plus a pending batch of {pending_count} tokens"
            )

        rounds = 0
        discarded = 0
        while state.resident_count + pending_count > capacity:
            if rounds >= self._max_iterations:
                raise ContextConfigError(
                    f"context shift did not converge after {rounds} rounds "
                    f"(resident={state.resident_count}, pending={pending_count}, capacity={capacity})"
                )
            n_discard = max(1, (state.resident_count - keep) // 2)
            self._discard_after_prefix(state, keep, n_discard)
            rounds += 1
            discarded += n_discard

        self._invalidate_session_cache(state, keep)
        logger.info(
            "context: shifted rounds=%d discarded=%d keep=%d resident=%d pending=%d capacity=%d",
            rounds,
            discarded,
            keep,
            state.resident_count,
            pending_count,
            capacity,
        )
        add_breadcrumb(
            "context shifted",
            category="context",
            data={"rounds": rounds, "discarded": discarded, "keep": keep, "resident": state.resident_count},
        )
        return ShiftOutcome(rounds=rounds, discarded=discarded, keep=keep)

    def _discard_after_prefix(self, state: SessionState, keep: int, n_discard: int) -> None:
        resident = state.resident_count
        self._engine.drop_range(self._sequence_id, keep, keep + n_discard)
        self._engine.shift_range(self._sequence_id, keep + n_discard, resident, -n_discard)
        self._engine.refresh_after_drop()
        state.resident_count = resident - n_discard

    def _invalidate_session_cache(self, state: SessionState, keep: int) -> None:
        # Shifted positions no longer line up with the session cache file
        if state.session_cache_path is not None:
            logger.info("context: session cache disabled after shift path=%s", state.session_cache_path)
            state.session_cache_path = None
        state.cached_prefix_length = min(state.cached_prefix_length, keep)


__all__ = ["ContextWindowController", "ShiftOutcome", "resolve_keep_count"]
