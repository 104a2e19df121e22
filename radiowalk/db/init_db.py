# radiowalk/db/init_db.py
from radiowalk.db.base import Base
from radiowalk.db.session import engine

# import models so SQLAlchemy registers tables before create_all()
from radiowalk.db.models import stations  # noqa: F401
from radiowalk.db import models_user  # noqa: F401

async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
