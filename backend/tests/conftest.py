"""Pytest configuration and fixtures."""

import os

# The app engine is built at import time; keep it off the filesystem
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta, timezone
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from serviceqr.db.base import Base
from serviceqr.db.session import get_db, get_session_factory
from serviceqr.main import app
# Import all models to ensure they're registered with Base.metadata
from serviceqr.models import *
from serviceqr.services.realtime import ChangeFeed

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class ManualClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 0, minutes: float = 0) -> None:
        self.current += timedelta(seconds=seconds, minutes=minutes)


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: sessionmaker(
        autocommit=False, autoflush=False, bind=db_session.get_bind()
    )
    # Disable rate limiters during tests to avoid flaky failures
    from serviceqr.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def feed() -> ChangeFeed:
    """A private change feed so tests don't see each other's events."""
    return ChangeFeed()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def mario_bistro(db_session: Session) -> Restaurant:
    """Restaurant with three tables and a partial theme override."""
    restaurant = Restaurant(
        slug="mario-bistro",
        name="Mario's Bistro",
        logo_url="https://example.com/mario.png",
        theme_config={"primary_color": "#b91c1c", "overlay_opacity": 0},
    )
    db_session.add(restaurant)
    db_session.flush()
    for number in ("1", "2", "Patio 1"):
        db_session.add(Table(
            restaurant_id=restaurant.id,
            table_number=number,
            qr_code_id=f"mario-bistro-table-{number.lower().replace(' ', '-')}",
        ))
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def sakura_sushi(db_session: Session) -> Restaurant:
    """Restaurant with a single table numbered "1"."""
    restaurant = Restaurant(slug="sakura-sushi", name="Sakura Sushi", theme_config={})
    db_session.add(restaurant)
    db_session.flush()
    db_session.add(Table(restaurant_id=restaurant.id, table_number="1", qr_code_id="sakura-sushi-table-1"))
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def mario_table(db_session: Session, mario_bistro: Restaurant) -> Table:
    return (
        db_session.query(Table)
        .filter(Table.restaurant_id == mario_bistro.id, Table.table_number == "1")
        .one()
    )


@pytest.fixture
def sakura_table(db_session: Session, sakura_sushi: Restaurant) -> Table:
    return db_session.query(Table).filter(Table.restaurant_id == sakura_sushi.id).one()


@pytest.fixture
def broken_reads(db_session, monkeypatch):
    """Make session queries on the given models fail as if the database went away."""
    def breaker(*models):
        original = db_session.query

        def query(*entities, **kwargs):
            if not models or (entities and entities[0] in models):
                raise OperationalError("SELECT", {}, Exception("server closed the connection"))
            return original(*entities, **kwargs)

        monkeypatch.setattr(db_session, "query", query)
    return breaker
