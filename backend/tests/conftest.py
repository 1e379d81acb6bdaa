from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recordlock.client.transport import LockApiClient
from recordlock.deps import get_db
from recordlock.locks.store import LockStore
from recordlock.main import app
from recordlock.shared.db import init_db

LOCKS_URL = "http://testserver/api/v1/locks"


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return LockStore(db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def override_db(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def api(override_db):
    return TestClient(app)


@pytest.fixture
def recorded_sleeps():
    return []


@pytest.fixture
def fake_sleep(recorded_sleeps):
    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return _sleep


@pytest_asyncio.fixture
async def asgi_client(override_db, fake_sleep):
    """LockApiClient wired straight into the FastAPI app."""
    client = LockApiClient(LOCKS_URL, transport=httpx.ASGITransport(app=app), sleep=fake_sleep)
    yield client
    await client.aclose()


def lock_payload(resource_id="001xyz", holder_name="Ana", holder_group="QA", minutes=120):
    acquired = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    expires = acquired + timedelta(minutes=minutes)
    return {
        "resource_id": resource_id,
        "holder_name": holder_name,
        "holder_group": holder_group,
        "acquired_at": acquired.isoformat(),
        "expires_at": expires.isoformat(),
        "remaining_sec": minutes * 60,
    }
