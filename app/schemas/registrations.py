import datetime as dt

from pydantic import BaseModel, Field


class RegistrationRequest(BaseModel):
    user_id: int = Field(ge=1)


class RegistrationOut(BaseModel):
    id: int
    event_id: int
    user_id: int
    registered_at: dt.datetime

    class Config:
        from_attributes = True
