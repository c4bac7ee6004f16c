"""
Error codes and exceptions for xyzload.

The tile math never raises: lookup misses and inverted sampling ranges are
reported through return values and log records carrying an ErrorCode.
Exceptions are kept for invalid step parameters (ValidationError) and
unusable region data (RegionDataError).

Usage:
    from xyzload.errors import ErrorCode, ValidationError, create_error_response

    raise ValidationError("min_zoom must not exceed max_zoom", field="min_zoom")

    create_error_response("Region not found: Atlantis", ErrorCode.REGION_NOT_FOUND, region="Atlantis")
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Codes attached to errors, lookup misses and log records."""

    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Region lookup misses
    REGION_NOT_FOUND = "REGION_NOT_FOUND"
    REGION_NO_EXTENT = "REGION_NO_EXTENT"

    # Sampling range was given high-to-low and swapped
    INVERTED_RANGE = "INVERTED_RANGE"

    REGION_DATA_ERROR = "REGION_DATA_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class XYZLoadError(Exception):
    """Base class for the exceptions raised by xyzload.

    Attributes:
        message: Human-readable error message
        code: ErrorCode of the failure
        details: Extra context, such as the offending field or file
    """

    code = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        if self.details:
            return create_error_response(self.message, self.code, details=self.details)
        return create_error_response(self.message, self.code)


class ValidationError(XYZLoadError):
    """Step parameters or command-line arguments are invalid."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class RegionDataError(XYZLoadError):
    """A region data file is missing, unreadable or malformed."""

    code = ErrorCode.REGION_DATA_ERROR

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if path:
            details["path"] = path
        super().__init__(message, details)
        self.path = path


def create_error_response(
    message: str,
    code: ErrorCode | str = ErrorCode.UNKNOWN_ERROR,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Build an error dict without raising.

    Used for lookup misses and failed validations, which are reported as
    values rather than exceptions.
    """
    return {
        "error": message,
        "code": code.value if isinstance(code, ErrorCode) else code,
        **kwargs,
    }
