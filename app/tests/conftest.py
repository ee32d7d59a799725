from datetime import timedelta

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from app.database.db import Base, configure_sqlite, get_db, init_db, utcnow
from app.main import app
from app.models.events import Event
from app.models.registrations import Registration
from app.models.users import User


# A file-backed SQLite database: every thread gets its own connection, so
# BEGIN IMMEDIATE serializes concurrent registrations like it does in production.
@pytest.fixture(scope="session")
def engine(tmp_path_factory) -> Engine:
    path = tmp_path_factory.mktemp("db") / "test.db"
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    configure_sqlite(engine)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="session")
def session_factory(engine: Engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def clean_tables(session_factory):
    """Empty every table after each test."""
    yield
    with session_factory() as db, db.begin():
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())


@pytest.fixture
def db_session(session_factory):
    db: Session = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    # Override the database dependency
    def override_get_db():
        db: Session = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def redis_client(fake_redis, monkeypatch: pytest.MonkeyPatch):
    """Turn the per-event Redis lock on, backed by fakeredis."""
    monkeypatch.setattr("app.services.locks.get_redis_client", lambda: fake_redis)
    monkeypatch.setattr("app.services.locks.event_lock_enabled", lambda: True)
    return fake_redis


@pytest.fixture
def make_event(session_factory):
    """Insert an event directly, bypassing the future-date rule of create_event."""

    def _make(title="Test Event", capacity=10, location="Main Hall", when=None) -> Event:
        with session_factory() as db, db.begin():
            event = Event(
                title=title,
                datetime=when or utcnow() + timedelta(days=1),
                location=location,
                capacity=capacity,
            )
            db.add(event)
        return event

    return _make


@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    def _make(name=None, email=None) -> User:
        counter["n"] += 1
        with session_factory() as db, db.begin():
            user = User(
                name=name or f"User {counter['n']}",
                email=email or f"user{counter['n']}@example.com",
            )
            db.add(user)
        return user

    return _make


@pytest.fixture
def count_registrations(session_factory):
    def _count(event_id: int) -> int:
        with session_factory() as db, db.begin():
            return db.scalar(
                select(func.count(Registration.id)).where(Registration.event_id == event_id)
            )

    return _count
