# radiowalk/api/errors.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from radiowalk.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RadioWalkError,
    ValidationError,
)


def _status_for(exc: RadioWalkError) -> int:
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, AuthorizationError):
        return 403 if exc.authenticated else 401
    return 400


async def radiowalk_error_handler(request: Request, exc: RadioWalkError) -> JSONResponse:
    return JSONResponse(status_code=_status_for(exc), content={"detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RadioWalkError, radiowalk_error_handler)
