# radiowalk/services/validation.py
from __future__ import annotations

import math
from typing import Any
from urllib.parse import urlparse

from radiowalk.core.errors import ValidationError


def validate_coordinates(lat: Any, lng: Any) -> tuple[float, float]:
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        raise ValidationError("Latitude and longitude must be numbers")

    if math.isnan(lat_f) or not -90.0 <= lat_f <= 90.0:
        raise ValidationError(f"Latitude {lat} out of range [-90, 90]")
    if math.isnan(lng_f) or not -180.0 <= lng_f <= 180.0:
        raise ValidationError(f"Longitude {lng} out of range [-180, 180]")
    return lat_f, lng_f


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Station name must not be empty")
    return name


def validate_url(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    parsed = urlparse(str(value))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{field} must be an http(s) URL")
    return str(value)


def validate_likes(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("likes must be a non-negative integer")
    return value


def validate_page(limit: int, offset: int, *, max_limit: int = 100) -> None:
    if not 1 <= limit <= max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}")
    if offset < 0:
        raise ValidationError("offset must be >= 0")
