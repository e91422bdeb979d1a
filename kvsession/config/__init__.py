"""Aggregator of configuration modules.

This module re-exports the config API from smaller modules:
- context: context window size, batching, shift limits
- session: placeholder marker, sentinel policy, state format
- sampling: default sampling and penalty parameters
- logging: log level and format
- telemetry: Sentry settings

Functions live in kvsession/helpers/.
"""

from .context import (
    CONTEXT_SIZE,
    BATCH_SIZE,
    SHIFT_MAX_ITERATIONS,
    DEFAULT_SEQUENCE_ID,
)
from .session import (
    IMAGE_PLACEHOLDER,
    ADD_SENTINEL_ON_PROMPT,
    END_OF_TEXT_MARKER,
    STATE_FORMAT,
    STATE_FORMAT_VERSION,
    SESSION_ENGINE_CACHE_SUFFIX,
)
from .sampling import (
    MAX_TOKENS,
    STOP_STRINGS,
    TEMPERATURE,
    TOP_K,
    TOP_P,
    MIN_P,
    REPEAT_LAST_N,
    REPEAT_PENALTY,
    FREQUENCY_PENALTY,
    PRESENCE_PENALTY,
    PENALIZE_NL,
    MIROSTAT,
    MIROSTAT_TAU,
    MIROSTAT_ETA,
    MIROSTAT_M,
    SAMPLING_SEED,
)
from .logging import APP_LOG_LEVEL, APP_LOG_FORMAT, APP_LOG_DATEFMT


__all__ = [
    # context
    "CONTEXT_SIZE",
    "BATCH_SIZE",
    "SHIFT_MAX_ITERATIONS",
    "DEFAULT_SEQUENCE_ID",
    # session
    "IMAGE_PLACEHOLDER",
    "ADD_SENTINEL_ON_PROMPT",
    "END_OF_TEXT_MARKER",
    "STATE_FORMAT",
    "STATE_FORMAT_VERSION",
    "SESSION_ENGINE_CACHE_SUFFIX",
    # sampling
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
    # logging
    "APP_LOG_LEVEL",
    "APP_LOG_FORMAT",
    "APP_LOG_DATEFMT",
]
