import logging
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database.db import utcnow
from app.models.registrations import Registration
from app.models.users import User
from app.services.errors import DuplicateEmailError, NotFoundError, ValidationError
from app.services.transactions import is_unique_violation, read_snapshot, run_in_transaction

logger = logging.getLogger(__name__)

DEFAULT_RECENT_WINDOW_DAYS = 30


def create_user(db: Session, *, name: str, email: str) -> User:
    name = (name or "").strip()
    email = (email or "").strip()
    if not name or len(name) > 255:
        raise ValidationError("name must be between 1 and 255 characters")
    if "@" not in email or len(email) > 255:
        raise ValidationError("email must be a valid address")

    def work() -> User:
        if db.scalar(select(User.id).where(User.email == email)) is not None:
            raise DuplicateEmailError()
        user = User(name=name, email=email)
        db.add(user)
        try:
            db.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateEmailError() from exc
            raise
        return user

    user = run_in_transaction(db, work, operation="create_user")
    logger.info("User %s created", user.id)
    return user


def get_user(db: Session, user_id: int) -> User:
    user = read_snapshot(db, lambda: db.get(User, user_id), operation=f"get_user({user_id})")
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(db: Session) -> list[User]:
    stmt = select(User).order_by(User.name.asc(), User.id.asc())
    return read_snapshot(db, lambda: list(db.scalars(stmt)), operation="list_users")


def count_recent_registrations(
    db: Session,
    user_id: int,
    window_days: int = DEFAULT_RECENT_WINDOW_DAYS,
    now: datetime | None = None,
) -> int:
    """Number of the user's registrations made within the trailing window."""
    if window_days < 1:
        raise ValidationError("window_days must be at least 1")
    since = (now or utcnow()) - timedelta(days=window_days)
    stmt = select(func.count(Registration.id)).where(
        Registration.user_id == user_id,
        Registration.registered_at >= since,
    )
    count = read_snapshot(
        db, lambda: db.scalar(stmt), operation=f"count_recent_registrations({user_id})"
    )
    return int(count or 0)
