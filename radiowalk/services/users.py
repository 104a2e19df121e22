# radiowalk/services/users.py
from __future__ import annotations

import logging
import re

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from radiowalk.core.errors import ConflictError, NotFoundError, ValidationError
from radiowalk.db.models.stations import Station, StationShare, StationType
from radiowalk.db.models_user import User

logger = logging.getLogger(__name__)

FALLBACK_USERNAME = "AnonymousUser"
USERNAME_MAX_LEN = 50


def base_username(email: str | None, display_name: str | None) -> str:
    """
    Username seed for a new account: the email local-part, else the display
    name with whitespace removed, else a fixed fallback.
    """
    if email:
        local = email.split("@", 1)[0].strip()
        if local:
            return local[:USERNAME_MAX_LEN]
    if display_name:
        squashed = re.sub(r"\s+", "", display_name)
        if squashed:
            return squashed[:USERNAME_MAX_LEN]
    return FALLBACK_USERNAME


async def username_taken(db: AsyncSession, username: str, *, exclude_user_id: str | None = None) -> bool:
    stmt = select(User.id).where(User.username == username)
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    return (await db.execute(stmt.limit(1))).first() is not None


async def allocate_username(db: AsyncSession, email: str | None, display_name: str | None) -> str:
    """Pick a free username, appending 1, 2, ... to the seed on collision."""
    base = base_username(email, display_name)
    candidate = base
    counter = 1
    while await username_taken(db, candidate):
        suffix = str(counter)
        candidate = f"{base[:USERNAME_MAX_LEN - len(suffix)]}{suffix}"
        counter += 1
    return candidate


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def update_profile(
    db: AsyncSession,
    user: User,
    *,
    username: str | None = None,
    email: str | None = None,
) -> User:
    if username is not None:
        username = username.strip()
        if not username or len(username) > USERNAME_MAX_LEN:
            raise ValidationError(f"Username must be 1-{USERNAME_MAX_LEN} characters")
        if await username_taken(db, username, exclude_user_id=user.id):
            raise ConflictError("Username already taken")
    if email is not None:
        email = email.lower().strip()
        q = await db.execute(select(User.id).where(User.email == email, User.id != user.id))
        if q.first() is not None:
            raise ConflictError("Email already taken")

    if username is not None:
        user.username = username
    if email is not None and email != user.email:
        user.email = email
        # a new address has not been verified yet
        user.email_verified_at = None
    await db.commit()
    logger.info("user %s updated profile", user.id)
    return user


async def search_users(db: AsyncSession, query: str, *, exclude_user_id: str, limit: int = 10) -> list[User]:
    query = query.strip()
    if not query:
        raise ValidationError("Search query must not be empty")
    if not 1 <= limit <= 20:
        raise ValidationError("limit must be between 1 and 20")

    stmt = (
        select(User)
        .where(User.id != exclude_user_id)
        .where(
            User.username.icontains(query, autoescape=True)
            | User.email.icontains(query, autoescape=True)
        )
        .order_by(User.username)
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())


async def public_stations_of(db: AsyncSession, user_id: str) -> list[Station]:
    stmt = (
        select(Station)
        .where(Station.owner_id == user_id, Station.type == StationType.PUBLIC)
        .order_by(Station.created_at.desc(), Station.id)
    )
    return list((await db.execute(stmt)).scalars().all())


async def user_stats(db: AsyncSession, user_id: str) -> dict:
    owned = (
        await db.execute(
            select(Station.type, func.count(Station.id), func.coalesce(func.sum(Station.likes), 0))
            .where(Station.owner_id == user_id)
            .group_by(Station.type)
        )
    ).all()
    counts = {t: (n, likes) for t, n, likes in owned}
    public_n, public_likes = counts.get(StationType.PUBLIC, (0, 0))
    private_n, private_likes = counts.get(StationType.PRIVATE, (0, 0))

    shared = (
        await db.execute(
            select(func.count())
            .select_from(StationShare)
            .join(Station, and_(Station.id == StationShare.station_id, Station.type == StationType.PRIVATE))
            .where(StationShare.user_id == user_id)
        )
    ).scalar_one()

    return {
        "totalOwnedStations": public_n + private_n,
        "publicStations": public_n,
        "privateStations": private_n,
        "sharedStations": int(shared),
        "totalLikes": int(public_likes) + int(private_likes),
    }
