# radiowalk/api/v1/stations.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from radiowalk.api.v1.serializers import station_out
from radiowalk.auth.deps import get_current_user, get_optional_user
from radiowalk.db.models.stations import StationType
from radiowalk.db.session import get_db
from radiowalk.services.proximity import NEARBY_RADIUS_KM, VisibilityMode, find_nearby
from radiowalk.services.station_repository import StationRepository
from radiowalk.services.stream_probe import StreamProbe

router = APIRouter(prefix="/stations", tags=["stations"])
probe = StreamProbe()

# request keys -> model attributes
FIELD_MAP = {
    "name": "name",
    "latitude": "latitude",
    "longitude": "longitude",
    "type": "type",
    "tags": "tags",
    "streamLink": "stream_link",
    "streamName": "stream_name",
    "favicon": "favicon",
    "likes": "likes",
}


# -------------------------
# Schemas
# -------------------------
class StationCreateIn(BaseModel):
    name: str
    latitude: float
    longitude: float
    type: StationType = StationType.PUBLIC
    tags: str | None = None
    streamLink: str | None = None
    streamName: str | None = None
    favicon: str | None = None
    likes: int = 0


class StationUpdateIn(BaseModel):
    name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    type: StationType | None = None
    tags: str | None = None
    streamLink: str | None = None
    streamName: str | None = None
    favicon: str | None = None
    likes: int | None = None


class ShareIn(BaseModel):
    userId: str


def _to_fields(payload: BaseModel, *, partial: bool) -> dict:
    data = payload.model_dump(exclude_unset=partial)
    return {FIELD_MAP[k]: v for k, v in data.items()}


def _user_id(user) -> str | None:
    return user.id if user else None


# -------------------------
# Routes
# -------------------------
@router.post("")
async def create_station(
    payload: StationCreateIn,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    station = await StationRepository(db).create(user.id, _to_fields(payload, partial=False))
    return station_out(station)


@router.get("")
async def list_stations(
    type: StationType = Query(...),
    ownerId: str | None = None,
    tags: str | None = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_optional_user),
):
    rows = await StationRepository(db).list_stations(
        type,
        _user_id(user),
        owner_id=ownerId,
        tags=tags,
        limit=limit,
        offset=offset,
    )
    return [station_out(s) for s in rows]


@router.get("/nearby")
async def stations_nearby(
    lat: float = Query(...),
    lng: float = Query(...),
    mode: VisibilityMode = Query(VisibilityMode.PUBLIC),
    tags: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_optional_user),
):
    results = await find_nearby(StationRepository(db), lat, lng, mode, _user_id(user), tags)
    return {
        "center": {"lat": lat, "lng": lng},
        "radiusKm": NEARBY_RADIUS_KM,
        "mode": mode.value,
        "count": len(results),
        "stations": [
            {**station_out(r.station), "distanceKm": r.distance_km}
            for r in results
        ],
    }


@router.get("/validate-stream")
async def validate_stream(url: str = Query(..., min_length=1)):
    return await probe.validate(url)


@router.get("/{station_id}")
async def get_station(
    station_id: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_optional_user),
):
    station = await StationRepository(db).get_by_id(station_id, _user_id(user))
    return station_out(station)


@router.patch("/{station_id}")
async def update_station(
    station_id: str,
    payload: StationUpdateIn,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    station = await StationRepository(db).update(station_id, user.id, _to_fields(payload, partial=True))
    return station_out(station)


@router.delete("/{station_id}", status_code=204)
async def delete_station(
    station_id: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    await StationRepository(db).delete(station_id, user.id)
    return Response(status_code=204)


@router.get("/{station_id}/users")
async def station_users(
    station_id: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    station = await StationRepository(db).station_users(station_id, user.id)
    return {
        "id": station.id,
        "name": station.name,
        "type": station.type.value,
        "owner": {"id": station.owner.id, "username": station.owner.username, "email": station.owner.email},
        "sharedUsers": [
            {"id": u.id, "username": u.username, "email": u.email, "createdAt": u.created_at}
            for u in station.shared_users
        ],
    }


@router.post("/{station_id}/shares")
async def share_station(
    station_id: str,
    payload: ShareIn,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    station = await StationRepository(db).share(station_id, user.id, payload.userId)
    return station_out(station)


@router.delete("/{station_id}/shares/{target_user_id}")
async def unshare_station(
    station_id: str,
    target_user_id: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    station = await StationRepository(db).unshare(station_id, user.id, target_user_id)
    return station_out(station)
