"""Per-turn loop control state for the generation loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class LoopPhase(str, Enum):
    """Where the generation loop currently is."""

    PROMPT_CONSUMPTION = "prompt_consumption"
    GENERATING = "generating"
    WAITING_FOR_INPUT = "waiting_for_input"
    TERMINATED = "terminated"


@dataclass
class LoopControlState:
    """Mutable flags for a single ``infer`` call.

    Attributes:
        remaining_tokens: Generation budget left (-1 = unlimited).
        wait_for_input: Set when a stop string matched or the budget ran out.
        stop_strings: Stop strings for this turn.
        return_value: True when the last step sampled a token to emit.
        need_to_save_session: True when newly resident tokens have not been
            written to the session cache file yet.
    """

    remaining_tokens: int
    wait_for_input: bool = False
    stop_strings: list[str] = field(default_factory=list)
    return_value: bool = False
    need_to_save_session: bool = False


__all__ = ["LoopControlState", "LoopPhase"]
