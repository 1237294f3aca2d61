"""Row models."""

from .base import DataModel

__all__ = ["DataModel"]
