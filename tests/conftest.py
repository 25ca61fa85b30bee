from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hostelcare.db.session import create_session_factory, ensure_schema
from hostelcare.uploads import LocalUploadStore
from hostelcare.users.models import Role, User


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await ensure_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return create_session_factory(engine)


@pytest.fixture
def upload_store(tmp_path: Path) -> LocalUploadStore:
    return LocalUploadStore(tmp_path / "uploads")


@pytest.fixture
def admin() -> User:
    return User(id=1, username="admin", role=Role.ADMIN)


@pytest.fixture
def warden() -> User:
    return User(id=2, username="warden", role=Role.WARDEN)


@pytest.fixture
def tenant() -> User:
    return User(id=3, username="tenant", role=Role.TENANT, hostel_block="B")
