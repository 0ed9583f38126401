from __future__ import annotations

import math

from ..core.exceptions import InvalidInput


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise InvalidInput(f"{field_name} must not be empty")
    return value.strip()


def require_coordinates(lat: float, lng: float) -> tuple[float, float]:
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid coordinates: ({lat!r}, {lng!r})")
    if math.isnan(lat_f) or math.isnan(lng_f):
        raise InvalidInput("Coordinates must be numbers")
    if not -90.0 <= lat_f <= 90.0:
        raise InvalidInput(f"Latitude out of range: {lat_f}")
    if not -180.0 <= lng_f <= 180.0:
        raise InvalidInput(f"Longitude out of range: {lng_f}")
    return lat_f, lng_f


def require_device_coordinates(lat: float, lng: float) -> tuple[float, float]:
    """Validate a position reported by a device.

    A device that has no fix often reports (0, 0); such a sample is rejected.
    """
    lat_f, lng_f = require_coordinates(lat, lng)
    if lat_f == 0.0 and lng_f == 0.0:
        raise InvalidInput("Device position is not available (0, 0)")
    return lat_f, lng_f


def require_non_negative(value: int, field_name: str) -> int:
    if value is None or int(value) < 0:
        raise InvalidInput(f"{field_name} must be >= 0")
    return int(value)
