# radiowalk/api/v1/users.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from radiowalk.auth.deps import get_current_user
from radiowalk.db.models_user import User
from radiowalk.db.session import get_db
from radiowalk.services import users as user_svc

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search")
async def search_users(
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(10, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await user_svc.search_users(db, q, exclude_user_id=user.id, limit=limit)
    return [
        {"id": u.id, "username": u.username, "email": u.email, "createdAt": u.created_at}
        for u in rows
    ]


@router.get("/username-available")
async def username_available(
    username: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    taken = await user_svc.username_taken(db, username, exclude_user_id=user.id)
    return {"available": not taken}


@router.get("/{user_id}")
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    # public view: no email, public stations only
    u = await user_svc.get_user(db, user_id)
    stations = await user_svc.public_stations_of(db, user_id)
    return {
        "id": u.id,
        "username": u.username,
        "createdAt": u.created_at,
        "ownedStations": [
            {
                "id": s.id,
                "name": s.name,
                "latitude": s.latitude,
                "longitude": s.longitude,
                "tags": s.tags,
                "streamName": s.stream_name,
                "favicon": s.favicon,
                "likes": s.likes,
                "createdAt": s.created_at,
            }
            for s in stations
        ],
    }
