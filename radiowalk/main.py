from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from radiowalk.api.errors import register_error_handlers
from radiowalk.api.router import api
from radiowalk.core.logging import configure_logging
from radiowalk.core.settings import settings
from radiowalk.db.init_db import init_db

app = FastAPI(title="RadioWalk Backend")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.include_router(api)

@app.on_event("startup")
async def on_startup():
    configure_logging()
    await init_db()
