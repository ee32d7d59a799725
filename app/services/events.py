import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.database.db import to_utc_naive, utcnow
from app.models.events import (
    MAX_CAPACITY,
    MAX_LOCATION_LENGTH,
    MAX_TITLE_LENGTH,
    MIN_CAPACITY,
    Event,
)
from app.models.registrations import Registration
from app.models.users import User
from app.services.errors import NotFoundError, ValidationError
from app.services.transactions import read_snapshot, run_in_transaction

logger = logging.getLogger(__name__)


def _require_text(value: str, field: str, max_length: int) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} must not be empty")
    if len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value


def create_event(
    db: Session,
    *,
    title: str,
    datetime: datetime,
    location: str,
    capacity: int,
    now: datetime | None = None,
) -> Event:
    title = _require_text(title, "title", MAX_TITLE_LENGTH)
    location = _require_text(location, "location", MAX_LOCATION_LENGTH)
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise ValidationError("capacity must be an integer")
    if not MIN_CAPACITY <= capacity <= MAX_CAPACITY:
        raise ValidationError(f"capacity must be between {MIN_CAPACITY} and {MAX_CAPACITY}")
    scheduled = to_utc_naive(datetime)
    if scheduled <= (now or utcnow()):
        raise ValidationError("datetime must be in the future")

    def work() -> Event:
        event = Event(title=title, datetime=scheduled, location=location, capacity=capacity)
        db.add(event)
        db.flush()
        return event

    event = run_in_transaction(db, work, operation="create_event")
    logger.info("Event %s created for %s at %s", event.id, event.datetime, event.location)
    return event


def get_event(db: Session, event_id: int) -> dict:
    """Event attributes with its registrants, read from one snapshot."""

    def work() -> dict:
        event = db.get(Event, event_id)
        if event is None:
            raise NotFoundError()
        registrants = db.execute(
            select(User.id, User.name, User.email)
            .join(Registration, Registration.user_id == User.id)
            .where(Registration.event_id == event_id)
            .order_by(Registration.registered_at, Registration.id)
        ).all()
        registered_users = [
            {"id": row.id, "name": row.name, "email": row.email} for row in registrants
        ]
        return {
            "id": event.id,
            "title": event.title,
            "datetime": event.datetime,
            "location": event.location,
            "capacity": event.capacity,
            # derived from the same rows as the list so the two always agree
            "current_registrations": len(registered_users),
            "registered_users": registered_users,
        }

    return read_snapshot(db, work, operation=f"get_event({event_id})")


def list_upcoming_events(db: Session, now: datetime | None = None) -> list[dict]:
    registrations = func.count(Registration.id).label("current_registrations")
    stmt = (
        select(Event, registrations)
        .outerjoin(Registration, Registration.event_id == Event.id)
        .where(Event.datetime > (now or utcnow()))
        .group_by(Event.id)
        .order_by(Event.datetime.asc(), Event.location.asc())
    )

    def work() -> list[dict]:
        return [
            {
                "id": event.id,
                "title": event.title,
                "datetime": event.datetime,
                "location": event.location,
                "capacity": event.capacity,
                "current_registrations": int(count or 0),
            }
            for event, count in db.execute(stmt).all()
        ]

    return read_snapshot(db, work, operation="list_upcoming_events")


def percentage_used(total: int, capacity: int) -> float:
    ratio = Decimal(total) * 100 / Decimal(capacity)
    return float(ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def get_event_stats(db: Session, event_id: int) -> dict:
    stmt = (
        select(Event.id, Event.capacity, func.count(Registration.id).label("total"))
        .outerjoin(Registration, Registration.event_id == Event.id)
        .where(Event.id == event_id)
        .group_by(Event.id, Event.capacity)
    )
    row = read_snapshot(
        db, lambda: db.execute(stmt).first(), operation=f"get_event_stats({event_id})"
    )
    if row is None:
        raise NotFoundError()

    total = int(row.total or 0)
    return {
        "event_id": row.id,
        "capacity": row.capacity,
        "total_registrations": total,
        "remaining_capacity": max(row.capacity - total, 0),
        "percentage_used": percentage_used(total, row.capacity),
    }
