"""Pytest configuration: in-memory SQLite test database & FastAPI TestClient."""

from __future__ import annotations

import os
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Override env BEFORE importing app modules so Settings picks up test values.
os.environ.update(
    {
        "DATABASE_URL": "sqlite:///:memory:",
        "RUN_MIGRATIONS_ON_STARTUP": "false",
        "JWT_SECRET": "test-jwt-secret-for-pytest",
        "APP_ENV": "test",
    }
)

from securohelp.core.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from securohelp.core.security import create_token  # noqa: E402
from securohelp.main import app  # noqa: E402

# ── Force all models to register on Base.metadata ──────────────────
import securohelp.models  # noqa: E402, F401
from securohelp.models import Client, User, UserRole  # noqa: E402
from securohelp.services.status_catalog import seed_statuses  # noqa: E402

# ── In-memory SQLite engine ────────────────────────────────────────
# StaticPool: TestClient serves requests from another thread and must see
# the same in-memory database.

_engine = create_engine(
    "sqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(_engine)

_TestSession = sessionmaker(bind=_engine, class_=Session, expire_on_commit=False)


class FakeClock:
    """Deterministic ``now()`` that tests can move forward or back."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _create_tables():
    """Create all tables before each test and drop after."""
    Base.metadata.create_all(bind=_engine)
    yield
    Base.metadata.drop_all(bind=_engine)


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Yield a test DB session with the status catalog seeded."""
    session = _TestSession()
    seed_statuses(session)
    session.commit()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 14, 10, 0, tzinfo=timezone.utc))


@pytest.fixture()
def agent(db: Session) -> User:
    user = User(
        id=uuid.uuid4(),
        email="agent@securohelp.test",
        first_name="Anna",
        last_name="Kowalska",
        role=UserRole.AGENT.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def sample_client(db: Session) -> Client:
    client = Client(
        id=uuid.uuid4(),
        first_name="Jan",
        last_name="Nowak",
        email="jan.nowak@example.pl",
        phone="+48 600 100 200",
        city="Kraków",
    )
    db.add(client)
    db.commit()
    return client


@pytest.fixture()
def make_case(db: Session, agent: User, sample_client: Client, clock: FakeClock):
    """Factory creating cases through ``CaseService`` on the test clock."""
    from securohelp.services.cases import CaseService

    def _make(**fields):
        data = {"client_id": sample_client.id, "incident_date": date(2025, 1, 10)}
        data.update(fields)
        return CaseService(db, clock=clock).create(data, agent)

    return _make


@pytest.fixture()
def auth_headers(agent: User) -> dict:
    return {"Authorization": f"Bearer {create_token(agent.id)}"}


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the in-memory DB."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()
