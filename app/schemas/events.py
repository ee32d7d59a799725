import datetime as dt

from pydantic import BaseModel, Field


# ---------- Event ----------
class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    datetime: dt.datetime
    location: str = Field(min_length=1, max_length=255)
    capacity: int = Field(ge=1, le=1000)


class EventOut(BaseModel):
    id: int
    title: str
    datetime: dt.datetime
    location: str
    capacity: int

    class Config:
        from_attributes = True


class EventSummaryOut(EventOut):
    current_registrations: int


class RegisteredUserOut(BaseModel):
    id: int
    name: str
    email: str


class EventDetailOut(EventSummaryOut):
    registered_users: list[RegisteredUserOut]


class EventStatsOut(BaseModel):
    event_id: int
    capacity: int
    total_registrations: int
    remaining_capacity: int
    percentage_used: float
