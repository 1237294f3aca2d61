"""Mapper registry - one configured mapper per row type."""
from typing import Dict, Type, TypeVar
import logging

from ..exceptions import MapperConfigurationError
from .data_model_mapper import DataModelMapper

logger = logging.getLogger(__name__)

TMapper = TypeVar("TMapper", bound=DataModelMapper)


class MapperRegistry:
    """
    Holds the mapper of each row type.

    Built at startup and passed to whatever constructs repositories.
    Registering a second mapper for a row type is a configuration error.
    """

    def __init__(self) -> None:
        self._mappers: Dict[type, DataModelMapper] = {}

    def register(self, mapper_type: Type[TMapper]) -> TMapper:
        """
        Construct (and so configure) a mapper and register it.

        Args:
            mapper_type: DataModelMapper subclass

        Returns:
            The configured mapper instance

        Raises:
            MapperConfigurationError: If the row type already has a mapper
        """
        data_model_type = getattr(mapper_type, "data_model_type", None)
        if data_model_type in self._mappers:
            existing = type(self._mappers[data_model_type]).__name__
            raise MapperConfigurationError(
                f"{data_model_type.__name__} is already mapped by {existing}"
            )

        mapper = mapper_type()
        self._mappers[data_model_type] = mapper
        logger.info(f"Registered mapper {mapper_type.__name__} for {data_model_type.__name__}")
        return mapper

    def get(self, data_model_type: type) -> DataModelMapper:
        try:
            return self._mappers[data_model_type]
        except KeyError:
            raise MapperConfigurationError(
                f"No mapper registered for {data_model_type.__name__}"
            ) from None

    def __contains__(self, data_model_type: type) -> bool:
        return data_model_type in self._mappers

    def __len__(self) -> int:
        return len(self._mappers)
