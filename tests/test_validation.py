"""Tests for client-side argument validation."""

import pytest

from ossmultipart.errors import ClientValidationError
from ossmultipart.validation import (
    format_range,
    validate_bucket_name,
    validate_object_key,
    validate_part_number,
    validate_transaction_id,
)


class TestValidateBucketName:
    """Tests for validate_bucket_name()."""

    @pytest.mark.parametrize("name", ["abc", "rubysdk-bucket", "a" * 63, "123456"])
    def test_valid(self, name):
        validate_bucket_name(name)

    @pytest.mark.parametrize(
        "name", ["ab", "a" * 64, "Upper", "under_score", "-leading", "trailing-", "dot.ted", ""]
    )
    def test_invalid(self, name):
        with pytest.raises(ClientValidationError):
            validate_bucket_name(name)


class TestValidateObjectKey:
    """Tests for validate_object_key()."""

    def test_valid(self):
        validate_object_key("a/b/c.txt")

    def test_max_length(self):
        validate_object_key("a" * 1024)

    def test_too_long_in_bytes(self):
        """Length is measured in UTF-8 bytes, not characters."""
        with pytest.raises(ClientValidationError):
            validate_object_key("中" * 342)

    def test_empty(self):
        with pytest.raises(ClientValidationError):
            validate_object_key("")


class TestValidatePartNumber:
    """Tests for validate_part_number()."""

    @pytest.mark.parametrize("number", [1, 500, 10000])
    def test_valid(self, number):
        validate_part_number(number)

    @pytest.mark.parametrize("number", [0, -3, 10001, "1", 1.0, True])
    def test_invalid(self, number):
        with pytest.raises(ClientValidationError):
            validate_part_number(number)


class TestFormatRange:
    """Tests for format_range()."""

    def test_inclusive_end(self):
        assert format_range((1, 5)) == "bytes=1-4"

    def test_single_byte(self):
        assert format_range((0, 1)) == "bytes=0-0"

    @pytest.mark.parametrize("bad", [(3, 3), (4, 2), (-1, 2), (1,), None])
    def test_invalid(self, bad):
        with pytest.raises(ClientValidationError):
            format_range(bad)


def test_empty_transaction_id():
    with pytest.raises(ClientValidationError):
        validate_transaction_id("")
