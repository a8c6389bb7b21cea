"""Event registrations: one row per (announcement, user); only the status ever changes."""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from clubhub.database import Base
import enum


class RegistrationStatus(str, enum.Enum):
    registered = "registered"
    cancelled = "cancelled"


class EventRegistration(Base):
    __tablename__ = "event_registrations"
    __table_args__ = (UniqueConstraint("announcement_id", "user_id", name="uq_event_registrations_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    announcement_id = Column(Integer, ForeignKey("announcements.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(SQLEnum(RegistrationStatus), nullable=False, default=RegistrationStatus.registered)

    # Refreshed on re-registration
    registered_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    announcement = relationship("Announcement")
