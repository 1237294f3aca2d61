"""Repository interfaces."""

from .data_model_repository import IDataModelRepository, TDataModel

__all__ = ["IDataModelRepository", "TDataModel"]
