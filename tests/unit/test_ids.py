"""
Tests for compact hex id encoding.
"""
from uuid import UUID

import pytest

from persistkit.domain.value_objects import (
    IdEncodingError,
    hex_id_to_uuid,
    is_hex_encodable,
    uuid_to_hex_id,
)


class TestHexIdEncoding:
    """Test 24-character hex id encoding."""

    def test_encode_returns_lowercase_24_chars(self):
        value = UUID("65f1a2b3-c4d5-e6f7-8091-a2b300000000")

        hex_id = uuid_to_hex_id(value)

        assert hex_id == "65f1a2b3c4d5e6f78091a2b3"
        assert len(hex_id) == 24

    def test_round_trip(self):
        hex_id = "0123456789abcdef01234567"

        assert uuid_to_hex_id(hex_id_to_uuid(hex_id)) == hex_id

    def test_decode_is_case_insensitive(self):
        assert hex_id_to_uuid("ABCDEF0123456789ABCDEF01") == hex_id_to_uuid(
            "abcdef0123456789abcdef01"
        )

    def test_decoded_uuid_has_zero_low_bits(self):
        value = hex_id_to_uuid("ffffffffffffffffffffffff")

        assert value.int & 0xFFFFFFFF == 0
        assert is_hex_encodable(value)

    def test_encode_rejects_non_zero_low_bits(self):
        value = UUID("65f1a2b3-c4d5-e6f7-8091-a2b300000001")

        with pytest.raises(IdEncodingError) as exc_info:
            uuid_to_hex_id(value)

        assert exc_info.value.value == value
        assert isinstance(exc_info.value, ValueError)
        assert not is_hex_encodable(value)

    @pytest.mark.parametrize("hex_id", ["", "abc", "0123456789abcdef012345678"])
    def test_decode_rejects_wrong_length(self, hex_id):
        with pytest.raises(ValueError, match="24"):
            hex_id_to_uuid(hex_id)

    def test_decode_rejects_non_hex_characters(self):
        with pytest.raises(ValueError, match="hexadecimal"):
            hex_id_to_uuid("0123456789abcdef0123456g")
