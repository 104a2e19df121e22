from fastapi import APIRouter
from radiowalk.api.v1.health import router as health
from radiowalk.api.v1.auth import router as auth_router
from radiowalk.api.v1.me import router as me_router
from radiowalk.api.v1.stations import router as stations_router
from radiowalk.api.v1.users import router as users_router


api = APIRouter()

api.include_router(health, prefix="/v1")
api.include_router(auth_router, prefix="/v1")
api.include_router(me_router, prefix="/v1", tags=["me"])
api.include_router(stations_router, prefix="/v1")
api.include_router(users_router, prefix="/v1")
