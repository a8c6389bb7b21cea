"""Coordinator schemas."""
from datetime import datetime
from pydantic import BaseModel, EmailStr


class AdminDecisionRequest(BaseModel):
    email: EmailStr


class PendingRequestOut(BaseModel):
    email: str
    name: str | None = None
    branch: str | None = None
    roll_number: str | None = None
    club_id: int | None = None
    requested_at: datetime | None = None
    club_name: str | None = None
    club_code: str | None = None
