"""Event registration schemas."""
from datetime import datetime
from pydantic import BaseModel
from clubhub.models.registration import RegistrationStatus


class RegistrationInfoOut(BaseModel):
    ok: bool = True
    registration_enabled: bool
    current_count: int
    max_registrations: int | None = None
    is_full: bool
    deadline: datetime | None = None
    deadline_passed: bool


class RosterEntry(BaseModel):
    id: int
    user_name: str | None = None
    user_email: str
    roll_number: str | None = None
    branch: str | None = None
    registered_at: datetime | None = None
    status: RegistrationStatus


class RosterOut(BaseModel):
    ok: bool = True
    registrations: list[RosterEntry]
    total_count: int
    registered_count: int


class MyRegistrationOut(BaseModel):
    id: int
    announcement_id: int
    registered_at: datetime | None = None
    status: RegistrationStatus
    title: str
    event_date: datetime | None = None
    registration_deadline: datetime | None = None
    club_name: str
    club_code: str
