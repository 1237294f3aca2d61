"""Domain value objects."""

from .execution_context import Diagnostic, ExecutionContext
from .ids import HEX_ID_LENGTH, IdEncodingError, hex_id_to_uuid, is_hex_encodable, uuid_to_hex_id
from .pagination import Pagination

__all__ = [
    "Diagnostic",
    "ExecutionContext",
    "HEX_ID_LENGTH",
    "IdEncodingError",
    "hex_id_to_uuid",
    "is_hex_encodable",
    "uuid_to_hex_id",
    "Pagination",
]
