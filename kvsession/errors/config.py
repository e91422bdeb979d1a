"""Configuration exceptions.

These are fatal: they signal that the session, its persisted state, or the
model resources cannot be used as given. Callers should not retry them.
"""


class ConfigurationError(Exception):
    """Base class for fatal configuration problems."""


class ContextConfigError(ConfigurationError):
    """Raised when no valid context shift exists.

    This happens when the context capacity cannot hold the unconditionally
    kept prefix plus the pending input batch.
    """


class StateRestoreError(ConfigurationError):
    """Raised when a persisted state blob is malformed or incompatible."""


class ModelResourceError(ConfigurationError):
    """Raised when a model resource the session depends on is missing."""


__all__ = [
    "ConfigurationError",
    "ContextConfigError",
    "StateRestoreError",
    "ModelResourceError",
]
