from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database.db import get_db
from app.schemas.events import (
    EventCreate,
    EventDetailOut,
    EventOut,
    EventStatsOut,
    EventSummaryOut,
)
from app.schemas.registrations import RegistrationOut, RegistrationRequest
from app.services import events as event_service
from app.services import registrations as registration_service

router = APIRouter(prefix="/api/events", tags=["events"])


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    return event_service.create_event(
        db,
        title=payload.title,
        datetime=payload.datetime,
        location=payload.location,
        capacity=payload.capacity,
    )


@router.get("", response_model=list[EventSummaryOut])
def list_upcoming_events(db: Session = Depends(get_db)):
    """Upcoming events, soonest first."""
    return event_service.list_upcoming_events(db)


@router.get("/{event_id}", response_model=EventDetailOut)
def get_event(event_id: int, db: Session = Depends(get_db)):
    return event_service.get_event(db, event_id)


@router.post(
    "/{event_id}/register",
    response_model=RegistrationOut,
    status_code=status.HTTP_201_CREATED,
)
def register(event_id: int, payload: RegistrationRequest, db: Session = Depends(get_db)):
    return registration_service.register(db, event_id=event_id, user_id=payload.user_id)


@router.delete("/{event_id}/register", response_model=RegistrationOut)
def cancel_registration(
    event_id: int, payload: RegistrationRequest, db: Session = Depends(get_db)
):
    return registration_service.cancel(db, event_id=event_id, user_id=payload.user_id)


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: int, db: Session = Depends(get_db)):
    return event_service.get_event_stats(db, event_id)
