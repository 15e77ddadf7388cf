"""Tests for error types and native error code mapping."""

import pytest

from wmi_records.errors import (
    NOT_FOUND_CODE,
    NotFoundError,
    RecordError,
    RemoteError,
    TranslationError,
    UnknownFieldError,
    normalize_code,
    parse_ole_error,
    remote_error,
)


class TestNormalizeCode:
    """Tests for normalize_code."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("80041002", "80041002"),
            ("0x80041010", "80041010"),
            ("8004100e", "8004100E"),
            (0x80041002, "80041002"),
            (-2147217406, "80041002"),
        ],
    )
    def test_forms(self, code, expected):
        assert normalize_code(code) == expected


class TestRemoteError:
    """Tests for remote_error and the RemoteError types."""

    def test_not_found_code(self):
        error = remote_error("80041002", source="SWbemServicesEx")
        assert isinstance(error, NotFoundError)
        assert error.code == NOT_FOUND_CODE
        assert error.message == "Not found"
        assert error.source == "SWbemServicesEx"

    def test_not_found_from_int(self):
        assert isinstance(remote_error(0x80041002), NotFoundError)

    def test_other_codes_stay_generic(self):
        error = remote_error("0x80041010", "Invalid class", "SWbemServicesEx")
        assert type(error) is RemoteError
        assert error.code == "80041010"
        assert str(error) == "Failed with 80041010 in SWbemServicesEx: Invalid class"

    def test_str_without_source(self):
        assert str(RemoteError("80041017")) == "Failed with 80041017"

    def test_hierarchy(self):
        assert issubclass(NotFoundError, RemoteError)
        assert issubclass(RemoteError, RecordError)
        assert issubclass(TranslationError, ValueError)
        assert issubclass(UnknownFieldError, AttributeError)

    def test_unknown_field_message(self):
        error = UnknownFieldError("Nope", "SMS_R_System")
        assert str(error) == "Unknown field 'Nope' on SMS_R_System"
        assert error.name == "Nope"


class TestParseOleError:
    """Tests for extracting codes from COM bridge error text."""

    def test_not_found(self):
        text = (
            "(in OLE method `ExecQuery': )\n"
            "    OLE error code:80041002 in SWbemServicesEx\n"
            "      Not found\n"
            "    HRESULT error code:0x80020009\n"
        )
        error = parse_ole_error(text)
        assert isinstance(error, NotFoundError)
        assert error.source == "SWbemServicesEx"

    def test_other_code(self):
        text = "OLE error code:80041010 in SWbemServicesEx\n  Invalid class \n"
        error = parse_ole_error(text)
        assert type(error) is RemoteError
        assert error.code == "80041010"
        assert error.message == "Invalid class"

    def test_no_code(self):
        assert parse_ole_error("connection refused") is None
