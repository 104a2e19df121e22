# radiowalk/services/station_repository.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from radiowalk.core.errors import AuthorizationError, NotFoundError, ValidationError
from radiowalk.db.models.stations import Station, StationShare, StationType
from radiowalk.db.models_user import User, now_utc
from radiowalk.services.geo import BoundingBox
from radiowalk.services.validation import (
    validate_coordinates,
    validate_likes,
    validate_name,
    validate_page,
    validate_url,
)

logger = logging.getLogger(__name__)

STATION_FIELDS = {
    "name",
    "latitude",
    "longitude",
    "type",
    "tags",
    "stream_link",
    "stream_name",
    "favicon",
    "likes",
}
# fields that may not be cleared by a patch
REQUIRED_FIELDS = {"name", "latitude", "longitude", "type", "likes"}


def _coerce_type(value: Any) -> StationType:
    try:
        return StationType(value)
    except ValueError:
        raise ValidationError(f"Invalid station type {value!r}")


def _clean_fields(fields: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    unknown = set(fields) - STATION_FIELDS
    if unknown:
        raise ValidationError(f"Unknown station fields: {', '.join(sorted(unknown))}")

    out = dict(fields)
    if partial:
        cleared = [k for k in REQUIRED_FIELDS if k in out and out[k] is None]
        if cleared:
            raise ValidationError(f"Cannot clear required fields: {', '.join(sorted(cleared))}")
    else:
        out.setdefault("type", StationType.PUBLIC)
        out.setdefault("likes", 0)
        for key in ("name", "latitude", "longitude"):
            if out.get(key) is None:
                raise ValidationError(f"{key} is required")

    if "name" in out:
        validate_name(out["name"])
    if "latitude" in out or "longitude" in out:
        # a patch may move one axis; range check both as they will be stored
        lat = out.get("latitude")
        lng = out.get("longitude")
        if lat is not None:
            out["latitude"], _ = validate_coordinates(lat, 0.0)
        if lng is not None:
            _, out["longitude"] = validate_coordinates(0.0, lng)
    if "type" in out:
        out["type"] = _coerce_type(out["type"])
    if "likes" in out:
        validate_likes(out["likes"])
    if "stream_link" in out:
        out["stream_link"] = validate_url(out["stream_link"], "streamLink")
    if "favicon" in out:
        out["favicon"] = validate_url(out["favicon"], "favicon")
    return out


def can_view(station: Station, requester_id: str | None) -> bool:
    """Private stations are visible to the owner and shared users only."""
    if station.type == StationType.PUBLIC:
        return True
    if requester_id is None:
        return False
    if station.owner_id == requester_id:
        return True
    return any(s.user_id == requester_id for s in station.shares)


class StationRepository:
    """
    Authorization-aware access to stations and their sharing set.

    Every call takes the requester explicitly. Mutations check ownership and
    write in the same session transaction and commit once.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -------------------------
    # Helpers
    # -------------------------
    @staticmethod
    def _with_relations(stmt):
        return stmt.options(
            selectinload(Station.owner),
            selectinload(Station.shares),
            selectinload(Station.shared_users),
        )

    async def _load(self, station_id: str, *, for_update: bool = False) -> Station:
        stmt = self._with_relations(select(Station).where(Station.id == station_id))
        if for_update:
            stmt = stmt.with_for_update()
        row = (
            await self.db.execute(stmt.execution_options(populate_existing=True))
        ).scalar_one_or_none()
        if not row:
            raise NotFoundError("Station not found")
        return row

    async def _load_owned(self, station_id: str, requester_id: str | None, action: str) -> Station:
        if not requester_id:
            raise AuthorizationError(f"Must be logged in to {action} a station", authenticated=False)
        station = await self._load(station_id, for_update=True)
        if station.owner_id != requester_id:
            logger.warning("user %s denied %s on station %s", requester_id, action, station_id)
            raise AuthorizationError(f"Not authorized to {action} this station")
        return station

    @staticmethod
    def _visibility_filter(stmt, station_type: StationType, requester_id: str | None):
        stmt = stmt.where(Station.type == station_type)
        if station_type == StationType.PRIVATE:
            if not requester_id:
                raise AuthorizationError(
                    "Must be logged in to view private stations", authenticated=False
                )
            stmt = stmt.where(
                or_(
                    Station.owner_id == requester_id,
                    Station.shares.any(StationShare.user_id == requester_id),
                )
            )
        return stmt

    @staticmethod
    def _tag_filter(stmt, tags: str | None):
        if tags:
            stmt = stmt.where(Station.tags.icontains(tags, autoescape=True))
        return stmt

    # -------------------------
    # Reads
    # -------------------------
    async def get_by_id(self, station_id: str, requester_id: str | None = None) -> Station:
        station = await self._load(station_id)
        if not can_view(station, requester_id):
            logger.warning("user %s denied read on private station %s", requester_id, station_id)
            raise AuthorizationError(
                "Not authorized to view this station", authenticated=requester_id is not None
            )
        return station

    async def query_by_type_and_bounds(
        self,
        bounds: BoundingBox,
        station_type: StationType,
        requester_id: str | None = None,
        tags: str | None = None,
    ) -> Sequence[Station]:
        stmt = (
            select(Station)
            .where(Station.latitude.between(bounds.min_lat, bounds.max_lat))
            .where(Station.longitude.between(bounds.min_lng, bounds.max_lng))
        )
        stmt = self._visibility_filter(stmt, _coerce_type(station_type), requester_id)
        stmt = self._tag_filter(stmt, tags)
        rows = (await self.db.execute(self._with_relations(stmt))).scalars().all()
        logger.debug("bounds query type=%s returned %d candidates", station_type, len(rows))
        return rows

    async def list_stations(
        self,
        station_type: StationType,
        requester_id: str | None = None,
        *,
        owner_id: str | None = None,
        tags: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Sequence[Station]:
        validate_page(limit, offset)
        stmt = self._visibility_filter(select(Station), _coerce_type(station_type), requester_id)
        if owner_id:
            stmt = stmt.where(Station.owner_id == owner_id)
        stmt = self._tag_filter(stmt, tags)
        stmt = stmt.order_by(Station.created_at.desc(), Station.id).limit(limit).offset(offset)
        return (await self.db.execute(self._with_relations(stmt))).scalars().all()

    async def list_owned(self, owner_id: str, *, limit: int = 20, offset: int = 0) -> Sequence[Station]:
        validate_page(limit, offset)
        stmt = (
            select(Station)
            .where(Station.owner_id == owner_id)
            .order_by(Station.created_at.desc(), Station.id)
            .limit(limit)
            .offset(offset)
        )
        return (await self.db.execute(self._with_relations(stmt))).scalars().all()

    async def list_shared_with(self, user_id: str, *, limit: int = 20, offset: int = 0) -> Sequence[Station]:
        """Private stations other users have shared with `user_id`."""
        validate_page(limit, offset)
        stmt = (
            select(Station)
            .where(Station.type == StationType.PRIVATE)
            .where(Station.shares.any(StationShare.user_id == user_id))
            .order_by(Station.created_at.desc(), Station.id)
            .limit(limit)
            .offset(offset)
        )
        return (await self.db.execute(self._with_relations(stmt))).scalars().all()

    async def station_users(self, station_id: str, requester_id: str | None) -> Station:
        """Owner-only view of a station with its owner and shared users loaded."""
        return await self._load_owned(station_id, requester_id, "view users of")

    # -------------------------
    # Mutations
    # -------------------------
    async def create(self, owner_id: str | None, fields: Mapping[str, Any]) -> Station:
        if not owner_id:
            raise AuthorizationError("Must be logged in to create a station", authenticated=False)
        data = _clean_fields(fields, partial=False)

        station = Station(owner_id=owner_id, **data)
        self.db.add(station)
        await self.db.commit()
        logger.info("user %s created %s station %s", owner_id, station.type.value, station.id)
        return await self._load(station.id)

    async def update(self, station_id: str, requester_id: str | None, patch: Mapping[str, Any]) -> Station:
        station = await self._load_owned(station_id, requester_id, "update")
        data = _clean_fields(patch, partial=True)

        for key, value in data.items():
            setattr(station, key, value)
        station.updated_at = now_utc()
        await self.db.commit()
        logger.info("user %s updated station %s (%s)", requester_id, station_id, ", ".join(sorted(data)))
        return await self._load(station_id)

    async def delete(self, station_id: str, requester_id: str | None) -> None:
        await self._load_owned(station_id, requester_id, "delete")

        await self.db.execute(delete(StationShare).where(StationShare.station_id == station_id))
        await self.db.execute(delete(Station).where(Station.id == station_id))
        await self.db.commit()
        logger.info("user %s deleted station %s", requester_id, station_id)

    async def share(self, station_id: str, owner_id: str | None, target_user_id: str) -> Station:
        station = await self._load_owned(station_id, owner_id, "share")
        if station.type != StationType.PRIVATE:
            raise ValidationError("Can only share private stations")
        if target_user_id == station.owner_id:
            raise ValidationError("Cannot share a station with its owner")

        target = await self.db.get(User, target_user_id)
        if not target:
            raise NotFoundError("Target user not found")

        if not any(s.user_id == target_user_id for s in station.shares):
            self.db.add(StationShare(station_id=station_id, user_id=target_user_id))
            station.updated_at = now_utc()
            await self.db.commit()
            logger.info("station %s shared with user %s", station_id, target_user_id)
        return await self._load(station_id)

    async def unshare(self, station_id: str, owner_id: str | None, target_user_id: str) -> Station:
        await self._load_owned(station_id, owner_id, "modify sharing for")

        result = await self.db.execute(
            delete(StationShare).where(
                StationShare.station_id == station_id,
                StationShare.user_id == target_user_id,
            )
        )
        if result.rowcount:
            station = await self._load(station_id)
            station.updated_at = now_utc()
            await self.db.commit()
            logger.info("station %s unshared from user %s", station_id, target_user_id)
        return await self._load(station_id)
