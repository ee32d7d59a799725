from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database.db import get_db
from app.schemas.users import RecentRegistrationsOut, UserCreate, UserOut
from app.services import users as user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    return user_service.create_user(db, name=payload.name, email=payload.email)


@router.get("", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return user_service.get_user(db, user_id)


@router.get("/{user_id}/events/count", response_model=RecentRegistrationsOut)
def count_recent_registrations(
    user_id: int,
    days: int = Query(user_service.DEFAULT_RECENT_WINDOW_DAYS, ge=1),
    db: Session = Depends(get_db),
):
    """How many events the user signed up for in the last ``days`` days."""
    count = user_service.count_recent_registrations(db, user_id, window_days=days)
    return {"user_id": user_id, "window_days": days, "event_count": count}
