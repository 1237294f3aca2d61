"""Severity levels for execution diagnostics."""
from enum import Enum


class MessageSeverity(str, Enum):
    """Diagnostic severity values."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
