"""Generation loop."""

from .interactive import InteractiveExecutor

__all__ = ["InteractiveExecutor"]
