"""Model weight loading exceptions.

Cancellation is a distinct outcome from failure so callers can tell a user
abort apart from a broken model file.
"""


class LoadWeightsFailedError(Exception):
    """Raised when the backend fails to load weights or apply an adapter."""

    def __init__(self, model_path: str, reason: str | None = None) -> None:
        message = f"failed to load weights from {model_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.model_path = model_path


class LoadCancelledError(Exception):
    """Raised when weight loading stops because cancellation was requested."""


__all__ = ["LoadWeightsFailedError", "LoadCancelledError"]
