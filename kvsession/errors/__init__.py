"""Centralized exception classes for the session controller.

This module re-exports all domain-specific exceptions from their respective
modules, providing a single import point for error handling.

Organization:
    - config.py: Fatal configuration errors (context, state blobs, resources)
    - engine.py: Recoverable turn-level engine failures
    - validation.py: Input validation errors with error codes
    - loading.py: Weight loading failure and cancellation
    - classify.py: Exception-to-label mapping
"""

from .validation import ValidationError
from .classify import classify_error, is_recoverable
from .engine import EngineDecodeError, TurnAbortedError
from .loading import LoadCancelledError, LoadWeightsFailedError
from .config import (
    ConfigurationError,
    ContextConfigError,
    ModelResourceError,
    StateRestoreError,
)

__all__ = [
    # Configuration errors
    "ConfigurationError",
    "ContextConfigError",
    "StateRestoreError",
    "ModelResourceError",
    # Turn errors
    "TurnAbortedError",
    "EngineDecodeError",
    # Validation
    "ValidationError",
    # Loading
    "LoadWeightsFailedError",
    "LoadCancelledError",
    # Classification
    "classify_error",
    "is_recoverable",
]
