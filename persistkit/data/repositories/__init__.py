"""Repository implementations."""

from .data_model_repository_impl import DataModelRepository

__all__ = ["DataModelRepository"]
