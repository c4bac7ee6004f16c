"""
Tests for error codes and exceptions.
"""

import pytest

from xyzload.errors import (
    ErrorCode,
    RegionDataError,
    ValidationError,
    XYZLoadError,
    create_error_response,
)


class TestErrorCode:
    """Tests for ErrorCode enum."""

    def test_error_codes_are_strings(self):
        assert ErrorCode.REGION_NOT_FOUND.value == "REGION_NOT_FOUND"
        assert ErrorCode.INVERTED_RANGE == "INVERTED_RANGE"


class TestXYZLoadError:
    """Tests for the base exception."""

    def test_basic_creation(self):
        error = XYZLoadError("Test error")
        assert str(error) == "Test error"
        assert error.code == ErrorCode.UNKNOWN_ERROR
        assert error.details == {}

    def test_to_dict_without_details(self):
        assert XYZLoadError("Test error").to_dict() == {
            "error": "Test error",
            "code": "UNKNOWN_ERROR",
        }


class TestValidationError:
    """Tests for ValidationError."""

    def test_field(self):
        error = ValidationError("bad zoom", field="min_zoom")
        assert error.code == ErrorCode.VALIDATION_ERROR
        assert error.field == "min_zoom"
        assert error.to_dict() == {
            "error": "bad zoom",
            "code": "VALIDATION_ERROR",
            "details": {"field": "min_zoom"},
        }

    def test_details_not_mutated(self):
        """The caller's details dict should be copied, not updated."""
        details = {"errors": []}
        ValidationError("bad zoom", field="min_zoom", details=details)
        assert details == {"errors": []}


class TestRegionDataError:
    """Tests for RegionDataError."""

    def test_path(self):
        error = RegionDataError("broken", path="/tmp/regions.json")
        assert error.code == ErrorCode.REGION_DATA_ERROR
        assert error.path == "/tmp/regions.json"
        assert error.details["path"] == "/tmp/regions.json"

    def test_catch_as_base(self):
        with pytest.raises(XYZLoadError):
            raise RegionDataError("broken")


class TestCreateErrorResponse:
    """Tests for create_error_response."""

    def test_with_enum(self):
        response = create_error_response("Missing", ErrorCode.REGION_NOT_FOUND, region="Atlantis")
        assert response == {"error": "Missing", "code": "REGION_NOT_FOUND", "region": "Atlantis"}

    def test_with_string_code(self):
        assert create_error_response("Oops", "CUSTOM")["code"] == "CUSTOM"

    def test_default_code(self):
        assert create_error_response("Oops")["code"] == "UNKNOWN_ERROR"
