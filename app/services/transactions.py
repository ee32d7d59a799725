import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import config
from app.database.db import SQLITE_BEGIN_OPTION
from app.services.errors import ConflictError, ServiceError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03"}
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: DBAPIError) -> str | None:
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_transient(exc: DBAPIError) -> bool:
    if _sqlstate(exc) in TRANSIENT_SQLSTATES:
        return True
    message = str(exc.orig).lower()
    return "database is locked" in message or "database is busy" in message


def is_unique_violation(exc: IntegrityError) -> bool:
    return _sqlstate(exc) == UNIQUE_VIOLATION or "unique constraint" in str(exc.orig).lower()


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    return (
        _sqlstate(exc) == FOREIGN_KEY_VIOLATION
        or "foreign key constraint" in str(exc.orig).lower()
    )


def _close_implicit_transaction(db: Session) -> None:
    # earlier reads on this session autobegin a transaction; end it so the
    # work below opens its own, without committing anything the caller left
    if db.new or db.dirty or db.deleted:
        raise RuntimeError(
            "session has uncommitted changes; commit or roll them back before calling a service"
        )
    if db.in_transaction():
        db.rollback()


def run_in_transaction(
    db: Session, work: Callable[[], T], *, operation: str, read_only: bool = False
) -> T:
    """
    Run ``work`` inside its own transaction, retrying on transient contention.

    ServiceErrors raised by ``work`` roll the transaction back and propagate
    untouched. Serialization failures, deadlocks, lock timeouts and SQLite
    "database is locked" errors are retried up to REGISTRATION_MAX_ATTEMPTS
    times and then reported as ConflictError. Anything else coming out of the
    database is logged and reported as an opaque StorageError.

    ``read_only`` transactions open with a deferred BEGIN on SQLite so they do
    not queue behind writers for the write lock.
    """
    _close_implicit_transaction(db)
    attempts = max(config.REGISTRATION_MAX_ATTEMPTS, 1)

    for attempt in range(1, attempts + 1):
        try:
            with db.begin():
                if read_only:
                    db.connection(execution_options={SQLITE_BEGIN_OPTION: "DEFERRED"})
                return work()
        except ServiceError:
            raise
        except DBAPIError as exc:
            if not is_transient(exc):
                logger.exception("%s failed with a storage error", operation)
                raise StorageError() from exc
            logger.warning(
                "%s hit storage contention (attempt %d/%d): %s",
                operation, attempt, attempts, exc.orig,
            )
        except SQLAlchemyError as exc:
            logger.exception("%s failed with a storage error", operation)
            raise StorageError() from exc

        if attempt < attempts:
            time.sleep(config.REGISTRATION_RETRY_BACKOFF * attempt)

    logger.warning("%s gave up after %d attempts", operation, attempts)
    raise ConflictError()


def read_snapshot(db: Session, work: Callable[[], T], *, operation: str) -> T:
    """Run a group of reads in one short read-only transaction."""
    return run_in_transaction(db, work, operation=operation, read_only=True)
