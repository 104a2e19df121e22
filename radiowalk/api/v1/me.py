# radiowalk/api/v1/me.py
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from radiowalk.api.v1.serializers import station_out
from radiowalk.auth.deps import get_current_user
from radiowalk.db.models_user import User
from radiowalk.db.session import get_db
from radiowalk.services import users as user_svc
from radiowalk.services.station_repository import StationRepository

router = APIRouter(prefix="/me")


class ProfileUpdateIn(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr | None = None


def _profile(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "displayName": user.display_name,
        "emailVerifiedAt": user.email_verified_at,
        "createdAt": user.created_at,
    }


@router.get("")
async def me(user: User = Depends(get_current_user)):
    return _profile(user)


@router.patch("")
async def update_me(
    payload: ProfileUpdateIn,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    user = await user_svc.update_profile(db, user, username=payload.username, email=payload.email)
    return _profile(user)


@router.get("/stats")
async def my_stats(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await user_svc.user_stats(db, user.id)


@router.get("/stations")
async def my_stations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await StationRepository(db).list_owned(user.id, limit=limit, offset=offset)
    return [station_out(s) for s in rows]


@router.get("/shared-stations")
async def shared_with_me(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await StationRepository(db).list_shared_with(user.id, limit=limit, offset=offset)
    return [station_out(s) for s in rows]
