"""Clubs (static reference data) and student subscriptions to them."""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from clubhub.database import Base


class Club(Base):
    __tablename__ = "clubs"

    id = Column(Integer, primary_key=True, index=True)
    club_name = Column(String(255), nullable=False)
    club_code = Column(String(50), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ClubSubscription(Base):
    __tablename__ = "club_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "club_id", name="uq_club_subscriptions_user_club"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    club_id = Column(Integer, ForeignKey("clubs.id"), nullable=False, index=True)
    # Unsubscribe is a soft delete; subscribing again reactivates the row
    is_active = Column(Boolean, default=True, nullable=False)

    # Refreshed on re-subscribe
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    club = relationship("Club")
