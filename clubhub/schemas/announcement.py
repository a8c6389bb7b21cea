"""Announcement, like and comment schemas."""
from datetime import datetime
from pydantic import BaseModel


class AnnouncementOut(BaseModel):
    id: int
    club_id: int
    club_name: str | None = None
    club_code: str | None = None
    title: str
    content: str
    image_url: str | None = None
    created_by: str | None = None
    author_name: str | None = None
    registration_enabled: bool = False
    registration_deadline: datetime | None = None
    max_registrations: int | None = None
    like_count: int = 0
    comment_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AnnouncementUpdate(BaseModel):
    title: str = ""
    content: str = ""


class CommentCreate(BaseModel):
    comment_text: str = ""


class CommentOut(BaseModel):
    id: int
    announcement_id: int
    user_id: int
    comment_text: str
    created_at: datetime | None = None
    name: str | None = None
    email: str
    profile_picture: str | None = None
