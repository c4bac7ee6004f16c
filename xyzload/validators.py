"""
Input validation utilities for xyzload.

Provides validation functions for the inputs a load-test step supplies:
- Coordinate validation (latitude, longitude)
- Bounding box validation
- Zoom level and zoom range validation
- Region name and request count validation

All validators return a ValidationResult with success status and error details.
"""

import math
from dataclasses import dataclass
from typing import Any

from xyzload.errors import ValidationError
from xyzload.tiles import GeoBoundingBox, ZoomRange

DEFAULT_MAX_ZOOM = 22


@dataclass
class ValidationResult:
    """Result of a validation operation."""

    valid: bool
    error: str | None = None
    value: Any = None  # Parsed/normalized value

    def unwrap(self, field: str | None = None) -> Any:
        """Return the parsed value or raise ValidationError."""
        if not self.valid:
            raise ValidationError(self.error or "Validation failed", field=field)
        return self.value


def _invalid(message: str) -> ValidationResult:
    return ValidationResult(valid=False, error=message)


def _to_finite_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(number):
        return None
    return number


# ============================================================
# Coordinate Validation
# ============================================================

def validate_latitude(value: float | str, field_name: str = "latitude") -> ValidationResult:
    """
    Validate latitude value (-90 to 90).

    Args:
        value: Latitude value to validate
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with float value if valid
    """
    lat = _to_finite_float(value)
    if lat is None:
        return _invalid(f"{field_name} must be a finite number")

    if not -90 <= lat <= 90:
        return _invalid(f"{field_name} must be between -90 and 90 (got {lat})")

    return ValidationResult(valid=True, value=lat)


def validate_longitude(
    value: float | str,
    field_name: str = "longitude",
    allow_wrap: bool = False,
) -> ValidationResult:
    """
    Validate longitude value.

    Args:
        value: Longitude value to validate
        field_name: Name of the field for error messages
        allow_wrap: Accept -360 to 360 instead of -180 to 180, for region
            edges that run past the antimeridian

    Returns:
        ValidationResult with float value if valid
    """
    lng = _to_finite_float(value)
    if lng is None:
        return _invalid(f"{field_name} must be a finite number")

    limit = 360 if allow_wrap else 180
    if not -limit <= lng <= limit:
        return _invalid(f"{field_name} must be between -{limit} and {limit} (got {lng})")

    return ValidationResult(valid=True, value=lng)


# ============================================================
# Bounding Box Validation
# ============================================================

def validate_bbox(
    bbox: str | list | tuple,
    field_name: str = "bbox",
) -> ValidationResult:
    """
    Validate a bounding box given in west,south,east,north order.

    Accepts:
    - String format: "west,south,east,north" (e.g., "-11,45,6,62")
    - List/tuple format: [west, south, east, north]

    West may be greater than east; the tile sampler swaps inverted
    ranges, so that is not rejected here.

    Args:
        bbox: Bounding box to validate
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with a GeoBoundingBox if valid
    """
    if not bbox:
        return _invalid(f"{field_name} is required")

    if isinstance(bbox, str):
        parts = [_to_finite_float(x.strip()) for x in bbox.split(",")]
    elif isinstance(bbox, (list, tuple)):
        parts = [_to_finite_float(x) for x in bbox]
    else:
        return _invalid(f"Invalid {field_name} type. Expected string or list")

    if any(p is None for p in parts):
        return _invalid(
            f"Invalid {field_name} format. Use 'west,south,east,north' (e.g., '-11,45,6,62')"
        )

    if len(parts) != 4:
        return _invalid(
            f"{field_name} must have exactly 4 values (west,south,east,north), got {len(parts)}"
        )

    west, south, east, north = parts

    for name, lng in (("west", west), ("east", east)):
        result = validate_longitude(lng, name, allow_wrap=True)
        if not result.valid:
            return result

    for name, lat in (("south", south), ("north", north)):
        result = validate_latitude(lat, name)
        if not result.valid:
            return result

    return ValidationResult(
        valid=True,
        value=GeoBoundingBox(south=south, north=north, west=west, east=east),
    )


# ============================================================
# Zoom Level Validation
# ============================================================

def validate_zoom(
    value: int | str,
    min_zoom: int = 0,
    max_zoom: int = DEFAULT_MAX_ZOOM,
    field_name: str = "zoom",
) -> ValidationResult:
    """
    Validate a map zoom level.

    Args:
        value: Zoom level to validate
        min_zoom: Minimum allowed zoom (default: 0)
        max_zoom: Maximum allowed zoom (default: 22)
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with int value if valid
    """
    if isinstance(value, bool):
        return _invalid(f"{field_name} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        return _invalid(f"{field_name} must be an integer")

    try:
        zoom = int(value)
    except (ValueError, TypeError):
        return _invalid(f"{field_name} must be an integer")

    if not min_zoom <= zoom <= max_zoom:
        return _invalid(f"{field_name} must be between {min_zoom} and {max_zoom} (got {zoom})")

    return ValidationResult(valid=True, value=zoom)


def validate_zoom_range(
    min_zoom: int | str,
    max_zoom: int | str,
    ceiling: int = DEFAULT_MAX_ZOOM,
) -> ValidationResult:
    """
    Validate a zoom range.

    Args:
        min_zoom: Lowest zoom level to sample
        max_zoom: Highest zoom level to sample
        ceiling: Highest zoom level accepted at all

    Returns:
        ValidationResult with a ZoomRange if valid
    """
    low = validate_zoom(min_zoom, max_zoom=ceiling, field_name="min_zoom")
    if not low.valid:
        return low

    high = validate_zoom(max_zoom, max_zoom=ceiling, field_name="max_zoom")
    if not high.valid:
        return high

    if low.value > high.value:
        return _invalid(f"min_zoom ({low.value}) must not exceed max_zoom ({high.value})")

    return ValidationResult(valid=True, value=ZoomRange(min=low.value, max=high.value))


# ============================================================
# Step Parameter Validation
# ============================================================

def validate_non_empty_string(value: Any, field_name: str = "value") -> ValidationResult:
    """Validate that a value is a non-blank string, returning it stripped."""
    if not isinstance(value, str) or not value.strip():
        return _invalid(f"{field_name} must be a non-empty string")
    return ValidationResult(valid=True, value=value.strip())


def validate_region_names(names: Any, field_name: str = "regions") -> ValidationResult:
    """
    Validate a list of region names.

    A single string is accepted as a one-element list.

    Returns:
        ValidationResult with a list of stripped names if valid
    """
    if isinstance(names, str):
        names = [names]

    if not isinstance(names, (list, tuple)) or not names:
        return _invalid(f"{field_name} must be a non-empty list of region names")

    cleaned = []
    for name in names:
        result = validate_non_empty_string(name, field_name)
        if not result.valid:
            return result
        cleaned.append(result.value)

    return ValidationResult(valid=True, value=cleaned)


def validate_request_count(value: Any, field_name: str = "count", maximum: int = 1_000_000) -> ValidationResult:
    """Validate the number of requests to plan (1 to maximum)."""
    if isinstance(value, bool):
        return _invalid(f"{field_name} must be an integer")
    try:
        count = int(value)
    except (ValueError, TypeError):
        return _invalid(f"{field_name} must be an integer")

    if not 1 <= count <= maximum:
        return _invalid(f"{field_name} must be between 1 and {maximum} (got {count})")

    return ValidationResult(valid=True, value=count)
