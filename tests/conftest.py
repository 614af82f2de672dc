import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from urbancare.db import crud
from urbancare.lifecycle.roles import Actor, Role
from urbancare.models import Base
from urbancare.services.auth import hash_password


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def people(db):
    """One account per role plus a second worker. Returns {name: Actor}."""
    pw = hash_password("testpass123")
    authority = await crud.create_user(db, "desk@city.test", pw, "authority", "City Desk", "Public Works")
    worker = await crud.create_user(db, "w1@city.test", pw, "worker", "Worker One", "Roads", "W-1")
    other = await crud.create_user(db, "w2@city.test", pw, "worker", "Worker Two", "Water", "W-2")
    citizen = await crud.create_user(db, "asha@city.test", pw, "citizen", "Asha")
    return {
        "authority": Actor(authority.id, Role.authority),
        "worker": Actor(worker.id, Role.worker),
        "other_worker": Actor(other.id, Role.worker),
        "citizen": Actor(citizen.id, Role.citizen),
    }
