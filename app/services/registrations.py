import logging
from datetime import datetime

from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import config
from app.database.db import utcnow
from app.models.events import Event
from app.models.registrations import Registration
from app.models.users import User
from app.services.errors import (
    AlreadyRegisteredError,
    CapacityExceededError,
    NotFoundError,
    PastEventError,
    RegistrationNotFoundError,
    ServiceError,
)
from app.services.locks import event_lock
from app.services.transactions import (
    is_foreign_key_violation,
    is_unique_violation,
    run_in_transaction,
)

logger = logging.getLogger(__name__)


def register(
    db: Session, *, event_id: int, user_id: int, now: datetime | None = None
) -> Registration:
    """
    Register a user for an event.

    Checks run in this order inside one transaction: the event exists, it is
    still in the future, it has a free slot, the user is not registered yet.
    The event row is locked before the count is read, so two requests racing
    for the last slot cannot both get it.
    """
    try:
        with event_lock(event_id):
            registration = run_in_transaction(
                db,
                lambda: _register_in_transaction(db, event_id, user_id, now or utcnow()),
                operation=f"register(event={event_id}, user={user_id})",
            )
    except ServiceError as exc:
        logger.info(
            "Registration of user %s for event %s rejected: %s",
            user_id, event_id, exc.kind.value,
        )
        raise

    logger.info("User %s registered for event %s", user_id, event_id)
    return registration


def _lock_event(db: Session, event_id: int) -> Event | None:
    if db.get_bind().dialect.name == "postgresql":
        # bound the wait on the row lock; expiry comes back as a retryable 55P03
        db.execute(text(f"SET LOCAL lock_timeout = {int(config.REGISTRATION_LOCK_TIMEOUT_MS)}"))
    stmt = (
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def _register_in_transaction(
    db: Session, event_id: int, user_id: int, now: datetime
) -> Registration:
    """Internal function to create the registration within a transaction."""
    event = _lock_event(db, event_id)
    if event is None:
        raise NotFoundError()

    if event.datetime <= now:
        raise PastEventError()

    taken = db.scalar(
        select(func.count(Registration.id)).where(Registration.event_id == event_id)
    )
    if taken >= event.capacity:
        raise CapacityExceededError()

    existing = db.scalar(
        select(Registration.id).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
        )
    )
    if existing is not None:
        raise AlreadyRegisteredError()

    if db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    registration = Registration(event_id=event_id, user_id=user_id, registered_at=now)
    db.add(registration)
    try:
        db.flush()  # gets registration.id
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise AlreadyRegisteredError() from exc
        if is_foreign_key_violation(exc):
            raise NotFoundError("User not found") from exc
        raise
    return registration


def cancel(db: Session, *, event_id: int, user_id: int) -> Registration:
    """Delete the user's registration for the event and return what was removed."""
    try:
        with event_lock(event_id):
            registration = run_in_transaction(
                db,
                lambda: _cancel_in_transaction(db, event_id, user_id),
                operation=f"cancel(event={event_id}, user={user_id})",
            )
    except ServiceError as exc:
        logger.info(
            "Cancellation of user %s for event %s rejected: %s",
            user_id, event_id, exc.kind.value,
        )
        raise

    logger.info("User %s cancelled registration for event %s", user_id, event_id)
    return registration


def _cancel_in_transaction(db: Session, event_id: int, user_id: int) -> Registration:
    stmt = (
        delete(Registration)
        .where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
        )
        .returning(
            Registration.id,
            Registration.event_id,
            Registration.user_id,
            Registration.registered_at,
        )
    )
    row = db.execute(stmt).first()
    if row is None:
        raise RegistrationNotFoundError()
    # detached copy of the deleted row
    return Registration(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        registered_at=row.registered_at,
    )
