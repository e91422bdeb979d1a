"""Session behavior configuration.

IMAGE_PLACEHOLDER:
    Marker in prompt text where queued image embeddings are inserted.

ADD_SENTINEL_ON_PROMPT:
    Whether the first prompt of a conversation is tokenized with the model's
    leading sentinel (BOS) token. Follow-up inputs never get one.

END_OF_TEXT_MARKER:
    Extra output emitted when a turn ends on a literal end-of-sequence token.

STATE_FORMAT / STATE_FORMAT_VERSION:
    Identify persisted state blobs. Blobs with another format or version are
    rejected on restore.
"""

import os

from ..helpers.env import env_flag


IMAGE_PLACEHOLDER = os.getenv("IMAGE_PLACEHOLDER", "<image>")
ADD_SENTINEL_ON_PROMPT = env_flag("ADD_SENTINEL_ON_PROMPT", True)
END_OF_TEXT_MARKER = " [end of text]\n"

STATE_FORMAT = "kvsession.interactive"
STATE_FORMAT_VERSION = 1

# Extension of the engine cache sidecar written next to a session cache file
SESSION_ENGINE_CACHE_SUFFIX = os.getenv("SESSION_ENGINE_CACHE_SUFFIX", ".kv")


__all__ = [
    "IMAGE_PLACEHOLDER",
    "ADD_SENTINEL_ON_PROMPT",
    "END_OF_TEXT_MARKER",
    "STATE_FORMAT",
    "STATE_FORMAT_VERSION",
    "SESSION_ENGINE_CACHE_SUFFIX",
]
