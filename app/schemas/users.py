import datetime as dt

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    created_at: dt.datetime

    class Config:
        from_attributes = True


class RecentRegistrationsOut(BaseModel):
    user_id: int
    window_days: int
    event_count: int
