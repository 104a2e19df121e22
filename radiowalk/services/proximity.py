# radiowalk/services/proximity.py
"""
Nearby-station search.

A coarse bounding box narrows candidates in the database, then every
candidate gets an exact Haversine distance and anything beyond the radius
is dropped. The box uses a flat 1 deg ~ 111 km on both axes, so at high
latitudes it can under-select longitude; that gap is known and kept.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from radiowalk.core.errors import AuthorizationError, ValidationError
from radiowalk.db.models.stations import Station, StationType
from radiowalk.services import geo
from radiowalk.services.station_repository import StationRepository
from radiowalk.services.validation import validate_coordinates

logger = logging.getLogger(__name__)

NEARBY_RADIUS_KM = 5.0


class VisibilityMode(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    BOTH = "BOTH"

    @property
    def station_types(self) -> tuple[StationType, ...]:
        if self is VisibilityMode.PUBLIC:
            return (StationType.PUBLIC,)
        if self is VisibilityMode.PRIVATE:
            return (StationType.PRIVATE,)
        return (StationType.PUBLIC, StationType.PRIVATE)

    @property
    def requires_identity(self) -> bool:
        return StationType.PRIVATE in self.station_types


@dataclass(frozen=True)
class NearbyStation:
    station: Station
    distance_km: float


def within_radius(
    candidates,
    lat: float,
    lng: float,
    radius_km: float = NEARBY_RADIUS_KM,
) -> list[NearbyStation]:
    out: list[NearbyStation] = []
    for s in candidates:
        d = geo.haversine_km(lat, lng, s.latitude, s.longitude)
        # inclusive: a station exactly on the radius is kept
        if d <= radius_km:
            out.append(NearbyStation(station=s, distance_km=d))
    return out


async def find_nearby(
    repo: StationRepository,
    lat: float,
    lng: float,
    mode: VisibilityMode,
    requester_id: str | None = None,
    tags: str | None = None,
) -> list[NearbyStation]:
    lat, lng = validate_coordinates(lat, lng)
    try:
        mode = VisibilityMode(mode)
    except ValueError:
        raise ValidationError(f"Invalid visibility mode {mode!r}")
    if mode.requires_identity and not requester_id:
        raise AuthorizationError("Must be logged in to view private stations", authenticated=False)

    bounds = geo.bounding_box(lat, lng, NEARBY_RADIUS_KM)

    results: list[NearbyStation] = []
    for station_type in mode.station_types:
        candidates = await repo.query_by_type_and_bounds(bounds, station_type, requester_id, tags)
        results.extend(within_radius(candidates, lat, lng))

    # list.sort is stable, equal distances keep query order
    results.sort(key=lambda r: r.distance_km)
    logger.debug("nearby (%s, %s) mode=%s -> %d stations", lat, lng, mode.value, len(results))
    return results
