"""Club and subscription schemas."""
from datetime import datetime
from pydantic import BaseModel
from clubhub.models.user import UserRole


class ClubOut(BaseModel):
    id: int
    club_name: str
    club_code: str
    description: str | None = None
    category: str | None = None

    class Config:
        from_attributes = True


class ClubMemberOut(BaseModel):
    email: str
    name: str | None = None
    branch: str | None = None
    roll_number: str | None = None
    role: UserRole | None = None
    admin_requested: bool = False

    class Config:
        from_attributes = True


class SubscriptionOut(ClubOut):
    subscribed_at: datetime | None = None
