"""Sampling defaults for interactive generation.

These values seed ``InferenceParams`` when a caller does not override them.

Sampling Parameters:
    temperature: Controls randomness (0 = greedy argmax).
    top_k: Maximum number of candidate tokens (0 = disabled).
    top_p: Nucleus threshold on cumulative probability.
    min_p: Drops tokens below ``min_p * p_max``.

Penalties (applied over the recent-token window):
    repeat_last_n: Window length (-1 = whole context, 0 = disabled).
    repeat_penalty: Divides positive / multiplies negative logits (1.0 = off).
    frequency_penalty / presence_penalty: Subtracted per occurrence / once.
    penalize_nl: Whether the newline token is penalized too.

Mirostat:
    mirostat: 0 = off, 1 = v1, 2 = v2.
    mirostat_tau: Target surprise; mu starts at ``2 * tau``.
    mirostat_eta: Learning rate of the mu update.

All values can be overridden via environment variables or per call.
"""

import os

from ..helpers.env import env_flag, env_int, env_list, env_float


MAX_TOKENS = env_int("MAX_TOKENS", -1)
STOP_STRINGS = env_list("STOP_STRINGS", [])

TEMPERATURE = env_float("TEMPERATURE", 0.8)
TOP_K = env_int("TOP_K", 40)
TOP_P = env_float("TOP_P", 0.95)
MIN_P = env_float("MIN_P", 0.05)

REPEAT_LAST_N = env_int("REPEAT_LAST_N", 64)
REPEAT_PENALTY = env_float("REPEAT_PENALTY", 1.1)
FREQUENCY_PENALTY = env_float("FREQUENCY_PENALTY", 0.0)
PRESENCE_PENALTY = env_float("PRESENCE_PENALTY", 0.0)
PENALIZE_NL = env_flag("PENALIZE_NL", False)

MIROSTAT = env_int("MIROSTAT", 0)
MIROSTAT_TAU = env_float("MIROSTAT_TAU", 5.0)
MIROSTAT_ETA = env_float("MIROSTAT_ETA", 0.1)

# Token candidates used by mirostat v1 to estimate the Zipf exponent
MIROSTAT_M = 100

SAMPLING_SEED = os.getenv("SAMPLING_SEED")


__all__ = [
    "MAX_TOKENS",
    "STOP_STRINGS",
    "TEMPERATURE",
    "TOP_K",
    "TOP_P",
    "MIN_P",
    "REPEAT_LAST_N",
    "REPEAT_PENALTY",
    "FREQUENCY_PENALTY",
    "PRESENCE_PENALTY",
    "PENALIZE_NL",
    "MIROSTAT",
    "MIROSTAT_TAU",
    "MIROSTAT_ETA",
    "MIROSTAT_M",
    "SAMPLING_SEED",
]
