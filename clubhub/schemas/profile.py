"""Profile schemas."""
from datetime import datetime
from pydantic import BaseModel, field_validator
from clubhub.models.user import UserRole


class MeOut(BaseModel):
    email: str
    name: str | None = None
    role: UserRole | None = None
    roll_number: str | None = None
    admin_requested: bool = False
    profile_picture: str | None = None

    class Config:
        from_attributes = True


class ProfileOut(BaseModel):
    id: int
    email: str
    name: str | None = None
    branch: str | None = None
    roll_number: str | None = None
    role: UserRole | None = None
    club_id: int | None = None
    admin_requested: bool = False
    requested_at: datetime | None = None
    club_name: str | None = None
    club_code: str | None = None
    profile_picture: str | None = None


class ProfileUpdate(BaseModel):
    name: str | None = None
    branch: str | None = None
    roll_number: str | None = None
    role: UserRole | None = None
    club_id: int | None = None

    @field_validator("role", "club_id", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProfilePictureUpdate(BaseModel):
    profile_picture: str = ""
