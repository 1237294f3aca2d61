"""Domain enums."""

from .lifecycle_outcome import LifecycleOutcome
from .message_severity import MessageSeverity

__all__ = ["LifecycleOutcome", "MessageSeverity"]
