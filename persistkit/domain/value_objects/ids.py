"""
Compact identifier encoding.

A 128-bit identifier whose low 32 bits are zero carries only 96 bits of
information and can be rendered as a 24-character lowercase hex string
(the same width as a document-store object id).
"""
import re
from uuid import UUID

HEX_ID_LENGTH = 24

_LOW_BITS = 32
_LOW_MASK = (1 << _LOW_BITS) - 1
_HEX_PATTERN = re.compile(r"[0-9a-fA-F]+")


class IdEncodingError(ValueError):
    """Raised when a UUID cannot be represented as a compact hex id."""

    def __init__(self, value: UUID):
        self.value = value
        super().__init__(
            f"UUID {value} has non-zero low {_LOW_BITS} bits and cannot be "
            f"encoded as a {HEX_ID_LENGTH}-character hex id"
        )


def uuid_to_hex_id(value: UUID) -> str:
    """
    Encode a UUID as a 24-character lowercase hex id.

    Args:
        value: UUID whose low 32 bits are zero

    Returns:
        24-character lowercase hexadecimal string

    Raises:
        IdEncodingError: If the low 32 bits are not zero
    """
    if value.int & _LOW_MASK:
        raise IdEncodingError(value)
    return f"{value.int >> _LOW_BITS:0{HEX_ID_LENGTH}x}"


def hex_id_to_uuid(hex_id: str) -> UUID:
    """
    Decode a 24-character hex id into a UUID.

    Args:
        hex_id: 24 hexadecimal characters, any case

    Returns:
        UUID with the id in its high 96 bits and zero low bits

    Raises:
        ValueError: If the id is empty, has the wrong length or holds
            non-hexadecimal characters
    """
    if not hex_id or len(hex_id) != HEX_ID_LENGTH:
        raise ValueError(
            f"Hex id must be exactly {HEX_ID_LENGTH} characters, got {len(hex_id or '')}"
        )
    if not _HEX_PATTERN.fullmatch(hex_id):
        raise ValueError(f"Hex id contains non-hexadecimal characters: {hex_id!r}")
    return UUID(int=int(hex_id, 16) << _LOW_BITS)


def is_hex_encodable(value: UUID) -> bool:
    """Check whether a UUID can be rendered as a compact hex id."""
    return not value.int & _LOW_MASK
