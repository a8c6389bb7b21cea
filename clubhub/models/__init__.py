"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table.
"""
from clubhub.models.club import Club, ClubSubscription
from clubhub.models.user import User, UserRole
from clubhub.models.announcement import Announcement, AnnouncementLike, AnnouncementComment
from clubhub.models.registration import EventRegistration, RegistrationStatus

__all__ = [
    "Club",
    "ClubSubscription",
    "User",
    "UserRole",
    "Announcement",
    "AnnouncementLike",
    "AnnouncementComment",
    "EventRegistration",
    "RegistrationStatus",
]
