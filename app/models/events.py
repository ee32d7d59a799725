import datetime as dt

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.db import Base, utcnow

MAX_TITLE_LENGTH = 255
MAX_LOCATION_LENGTH = 255
MIN_CAPACITY = 1
MAX_CAPACITY = 1000


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(
            f"capacity >= {MIN_CAPACITY} AND capacity <= {MAX_CAPACITY}",
            name="ck_events_capacity_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(MAX_TITLE_LENGTH), nullable=False)
    datetime: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(MAX_LOCATION_LENGTH), nullable=False, index=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    registrations: Mapped[list["Registration"]] = relationship(
        back_populates="event", passive_deletes=True
    )
