from datetime import datetime, timezone

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.core.config import DATABASE_ECHO, SQLITE_BUSY_TIMEOUT, get_database_url


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form every timestamp is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# Connection execution option naming the SQLite BEGIN mode for a transaction
SQLITE_BEGIN_OPTION = "sqlite_begin_mode"


def configure_sqlite(engine: Engine) -> None:
    """
    Make SQLite behave as a transactional store for the registration engine.

    pysqlite's own transaction handling is switched off so that every
    transaction opens with BEGIN IMMEDIATE: the write lock is taken before the
    capacity count is read, which serializes concurrent registrations the same
    way a row lock does on PostgreSQL. A connection carrying the
    ``sqlite_begin_mode`` execution option opens with that mode instead, which
    lets read-only snapshots use a deferred BEGIN.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "IMMEDIATE")
        conn.exec_driver_sql(f"BEGIN {mode}")


def make_engine(url: str, echo: bool = False) -> Engine:
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        )
        configure_sqlite(engine)
        return engine
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine: Engine = make_engine(get_database_url(), echo=DATABASE_ECHO)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind: Engine | None = None) -> None:
    # Import models so that they register with Base.metadata
    from app.models import events, registrations, users  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
