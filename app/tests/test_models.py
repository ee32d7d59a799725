"""
Test database models (Event, User and Registration).
"""
from datetime import timedelta

import pytest
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database.db import utcnow
from app.models.events import Event
from app.models.registrations import Registration
from app.models.users import User


class TestEventModel:
    """Test the Event model."""

    def test_create_event(self, db_session: Session):
        """Test creating an event."""
        when = utcnow() + timedelta(days=3)
        event = Event(title="Test Event", datetime=when, location="Hall A", capacity=100)
        db_session.add(event)
        db_session.commit()

        assert event.id is not None
        assert event.title == "Test Event"
        assert event.capacity == 100
        assert event.datetime == when
        assert event.created_at is not None

    @pytest.mark.parametrize("capacity", [0, 1001])
    def test_capacity_check_constraint(self, db_session: Session, capacity: int):
        """Capacity outside 1..1000 is rejected by the database."""
        event = Event(
            title="Broken", datetime=utcnow() + timedelta(days=1), location="X", capacity=capacity
        )
        db_session.add(event)
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_event_relationship_with_registrations(self, db_session: Session, make_event, make_user):
        """Test the relationship between Event and Registration."""
        event = make_event(capacity=50)
        first, second = make_user(), make_user()

        db_session.add_all([
            Registration(event_id=event.id, user_id=first.id),
            Registration(event_id=event.id, user_id=second.id),
        ])
        db_session.commit()

        loaded = db_session.get(Event, event.id)
        assert len(loaded.registrations) == 2
        assert {r.user_id for r in loaded.registrations} == {first.id, second.id}
        db_session.rollback()


class TestUserModel:
    def test_email_is_unique(self, db_session: Session):
        db_session.add(User(name="Ann", email="ann@example.com"))
        db_session.commit()

        db_session.add(User(name="Other Ann", email="ann@example.com"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestRegistrationModel:
    """Test the Registration model."""

    def test_create_registration(self, db_session: Session, make_event, make_user):
        """Test creating a registration."""
        event = make_event()
        user = make_user()

        registration = Registration(event_id=event.id, user_id=user.id)
        db_session.add(registration)
        db_session.commit()

        assert registration.id is not None
        assert registration.event_id == event.id
        assert registration.user_id == user.id
        assert registration.registered_at is not None

    def test_event_user_pair_is_unique(self, db_session: Session, make_event, make_user):
        event = make_event()
        user = make_user()

        db_session.add(Registration(event_id=event.id, user_id=user.id))
        db_session.commit()

        db_session.add(Registration(event_id=event.id, user_id=user.id))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_registration_relationships(self, db_session: Session, make_event, make_user):
        """Test the relationship from Registration to Event and User."""
        event = make_event(title="Conference", capacity=500)
        user = make_user(name="Grace")

        registration = Registration(event_id=event.id, user_id=user.id)
        db_session.add(registration)
        db_session.commit()

        loaded = db_session.get(Registration, registration.id)
        assert loaded.event.title == "Conference"
        assert loaded.event.capacity == 500
        assert loaded.user.name == "Grace"
        db_session.rollback()

    def test_registrations_cascade_with_event(self, db_session: Session, make_event, make_user):
        """Deleting an event removes its registrations."""
        event = make_event()
        user = make_user()
        db_session.add(Registration(event_id=event.id, user_id=user.id))
        db_session.commit()

        db_session.execute(delete(Event).where(Event.id == event.id))
        db_session.commit()

        remaining = db_session.scalar(
            select(func.count(Registration.id)).where(Registration.user_id == user.id)
        )
        db_session.rollback()
        assert remaining == 0

    def test_registrations_cascade_with_user(self, db_session: Session, make_event, make_user):
        event = make_event()
        user = make_user()
        db_session.add(Registration(event_id=event.id, user_id=user.id))
        db_session.commit()

        db_session.execute(delete(User).where(User.id == user.id))
        db_session.commit()

        remaining = db_session.scalar(
            select(func.count(Registration.id)).where(Registration.event_id == event.id)
        )
        db_session.rollback()
        assert remaining == 0
