"""Credential store: user identity, password hash, role and club affiliation."""
from sqlalchemy import Column, Integer, String, Text, Enum as SQLEnum, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from clubhub.database import Base
import enum


class UserRole(str, enum.Enum):
    student = "student"
    club_admin = "club_admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Always stored lower-cased
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    # NULL until the user declares "student" or a coordinator approves a club-admin request
    role = Column(SQLEnum(UserRole), nullable=True)

    name = Column(String(255), nullable=True)
    branch = Column(String(255), nullable=True)
    roll_number = Column(String(50), nullable=True)
    club_id = Column(Integer, ForeignKey("clubs.id"), nullable=True)

    admin_requested = Column(Boolean, default=False, nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=True)

    profile_picture = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    club = relationship("Club", backref="members")
