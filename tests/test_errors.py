"""Tests for error types and the error-code mapping."""

import pytest

from ossmultipart.errors import (
    ClientValidationError,
    InvalidPart,
    NoSuchUpload,
    OSSClientError,
    ProtocolDecodeError,
    ServiceError,
    TransportError,
    service_error,
)


class TestServiceError:
    """Tests for ServiceError and service_error()."""

    def test_str_is_message(self):
        error = ServiceError("Code", "the message", request_id="r", http_status=400)
        assert str(error) == "the message"

    def test_known_code_maps_to_subclass(self):
        error = service_error("NoSuchUpload", "gone", "r", 404)
        assert isinstance(error, NoSuchUpload)
        assert error.code == "NoSuchUpload"
        assert error.http_status == 404

    def test_invalid_part(self):
        assert isinstance(service_error("InvalidPart", "m"), InvalidPart)

    def test_unknown_code(self):
        error = service_error("SomethingNew", "m")
        assert type(error) is ServiceError
        assert error.code == "SomethingNew"

    def test_extra_fields_default(self):
        assert service_error("X", "m").extra_fields == {}

    def test_repr(self):
        error = service_error("NoSuchUpload", "gone", "r", 404)
        assert "NoSuchUpload" in repr(error)
        assert "404" in repr(error)


class TestHierarchy:
    """All failures share one base class."""

    @pytest.mark.parametrize(
        "error",
        [
            ProtocolDecodeError("bad", b"<x"),
            TransportError("down"),
            ClientValidationError("nope"),
            ServiceError("C", "m"),
        ],
    )
    def test_base_class(self, error):
        assert isinstance(error, OSSClientError)

    def test_validation_error_is_value_error(self):
        assert isinstance(ClientValidationError("nope"), ValueError)

    def test_decode_error_keeps_body(self):
        assert ProtocolDecodeError("bad", b"<x").body == b"<x"
