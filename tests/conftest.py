# tests/conftest.py
import os
import tempfile
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from radiowalk.main import app
from radiowalk.db.base import Base
from radiowalk.db.session import get_db
from radiowalk.db.models import stations  # noqa: F401  (registers tables)
from radiowalk.db.models_user import User


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def test_db_url():
    # Use a real file (NOT :memory:) because async + sqlite + multiple connections can lock.
    fd, path = tempfile.mkstemp(prefix="test_radiowalk_", suffix=".db")
    os.close(fd)
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture(scope="session")
async def test_engine(test_db_url):
    engine = create_async_engine(
        test_db_url,
        future=True,
        echo=False,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
async def db_session(test_engine):
    async with test_engine.connect() as conn:
        trans = await conn.begin()

        async_session = sessionmaker(
            bind=conn,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with async_session() as session:
            yield session

        await trans.rollback()


@pytest.fixture()
async def client(db_session):
    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def make_user(db_session):
    """Insert a bare user row; for repository-level tests that skip HTTP auth."""

    async def _make(username: str) -> User:
        user = User(
            email=f"{username}_{uuid.uuid4().hex[:6]}@test.com",
            username=f"{username}_{uuid.uuid4().hex[:6]}",
            password_hash="x",
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture()
def register(client):
    """Register through the API and return (user json, auth headers)."""

    async def _register(prefix: str = "user", display_name: str | None = None):
        email = f"{prefix}_{uuid.uuid4().hex[:10]}@test.com"
        r = await client.post(
            "/v1/auth/register",
            json={"email": email, "password": "Passw0rd!", "displayName": display_name},
        )
        assert r.status_code == 200, r.text
        data = r.json()
        return data["user"], {"Authorization": f"Bearer {data['accessToken']}"}

    return _register
