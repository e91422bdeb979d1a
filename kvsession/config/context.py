"""Context window and batching configuration."""

from ..helpers.env import env_int


# Resident token positions the engine supports simultaneously
CONTEXT_SIZE = env_int("CONTEXT_SIZE", 4096)
# Maximum input tokens fed to the engine in one advance call
BATCH_SIZE = env_int("BATCH_SIZE", 512)

# Hard cap on shift rounds for a single advance; halving converges in
# roughly log2(CONTEXT_SIZE) rounds so this only trips on bad configuration
SHIFT_MAX_ITERATIONS = env_int("SHIFT_MAX_ITERATIONS", 32)

# Sequence id used for the single conversation stream an executor owns
DEFAULT_SEQUENCE_ID = env_int("DEFAULT_SEQUENCE_ID", 0)


__all__ = [
    "CONTEXT_SIZE",
    "BATCH_SIZE",
    "SHIFT_MAX_ITERATIONS",
    "DEFAULT_SEQUENCE_ID",
]
