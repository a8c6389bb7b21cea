"""Registration ledger: capacity- and deadline-bounded event rosters.

Each (announcement, user) pair owns at most one row. Cancelling and
re-registering only flip its status. The check-then-write in register() runs
while holding a row lock on the announcement (SELECT ... FOR UPDATE), so two
registrations racing for the last seat are serialized by the database.
"""
import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.database import as_utc
from clubhub.errors import ConflictError, ForbiddenError, NotFoundError
from clubhub.models.announcement import Announcement
from clubhub.models.club import Club
from clubhub.models.registration import EventRegistration, RegistrationStatus
from clubhub.models.user import User
from clubhub.services.policy import is_club_admin

logger = logging.getLogger(__name__)

CSV_HEADER = ["Name", "Email", "Roll Number", "Branch", "Registered At", "Status"]


class EventNotFound(NotFoundError):
    detail = "Event not found"


class RegistrationNotEnabled(ConflictError):
    detail = "Registration not enabled for this event"


class DeadlinePassed(ConflictError):
    detail = "Registration deadline has passed"


class EventFull(ConflictError):
    detail = "Event is full. Maximum registrations reached."


class AlreadyRegistered(ConflictError):
    detail = "Already registered for this event"


class RegistrationNotFound(NotFoundError):
    detail = "Registration not found"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RegistrationInfo:
    registration_enabled: bool
    current_count: int
    max_registrations: int | None
    deadline: datetime | None
    is_full: bool
    deadline_passed: bool


def event_query(db: Session, announcement_id: int, lock: bool = False):
    """Active announcement by id; lock=True takes a row lock (FOR UPDATE) until commit."""
    q = db.query(Announcement).filter(Announcement.id == announcement_id, Announcement.is_active.is_(True))
    if lock:
        q = q.with_for_update()
    return q


def _get_event(db: Session, announcement_id: int, lock: bool = False) -> Announcement:
    ann = event_query(db, announcement_id, lock=lock).first()
    if not ann:
        raise EventNotFound()
    return ann


def registered_count(db: Session, announcement_id: int) -> int:
    return (
        db.query(func.count(EventRegistration.id))
        .filter(
            EventRegistration.announcement_id == announcement_id,
            EventRegistration.status == RegistrationStatus.registered,
        )
        .scalar()
        or 0
    )


def register(db: Session, announcement_id: int, user: User, now: datetime | None = None) -> EventRegistration:
    now = now or _utcnow()
    try:
        ann = _get_event(db, announcement_id, lock=True)
        if not ann.registration_enabled:
            raise RegistrationNotEnabled()
        deadline = as_utc(ann.registration_deadline)
        if deadline is not None and now > deadline:
            raise DeadlinePassed()

        existing = (
            db.query(EventRegistration)
            .filter(EventRegistration.announcement_id == ann.id, EventRegistration.user_id == user.id)
            .first()
        )
        if existing and existing.status == RegistrationStatus.registered:
            raise AlreadyRegistered()
        if ann.max_registrations is not None and registered_count(db, ann.id) >= ann.max_registrations:
            raise EventFull()

        if existing:
            existing.status = RegistrationStatus.registered
            existing.registered_at = now
            reg = existing
        else:
            reg = EventRegistration(
                announcement_id=ann.id,
                user_id=user.id,
                status=RegistrationStatus.registered,
                registered_at=now,
            )
            db.add(reg)
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same pair first
        db.rollback()
        raise AlreadyRegistered()
    except Exception:
        db.rollback()
        raise
    db.refresh(reg)
    logger.info("%s registered for event %s", user.email, announcement_id)
    return reg


def unregister(db: Session, announcement_id: int, user: User) -> EventRegistration:
    _get_event(db, announcement_id)
    reg = (
        db.query(EventRegistration)
        .filter(
            EventRegistration.announcement_id == announcement_id,
            EventRegistration.user_id == user.id,
            EventRegistration.status == RegistrationStatus.registered,
        )
        .with_for_update()
        .first()
    )
    if not reg:
        raise RegistrationNotFound()
    reg.status = RegistrationStatus.cancelled
    db.commit()
    db.refresh(reg)
    logger.info("%s cancelled registration for event %s", user.email, announcement_id)
    return reg


def registration_status(db: Session, announcement_id: int, user: User) -> bool:
    reg = (
        db.query(EventRegistration)
        .filter(EventRegistration.announcement_id == announcement_id, EventRegistration.user_id == user.id)
        .first()
    )
    return reg is not None and reg.status == RegistrationStatus.registered


def registration_info(db: Session, announcement_id: int, now: datetime | None = None) -> RegistrationInfo:
    now = now or _utcnow()
    ann = _get_event(db, announcement_id)
    count = registered_count(db, ann.id)
    deadline = as_utc(ann.registration_deadline)
    return RegistrationInfo(
        registration_enabled=bool(ann.registration_enabled),
        current_count=count,
        max_registrations=ann.max_registrations,
        deadline=deadline,
        is_full=ann.max_registrations is not None and count >= ann.max_registrations,
        deadline_passed=deadline is not None and now > deadline,
    )


def _owned_event(db: Session, announcement_id: int, requester: User) -> Announcement:
    if not is_club_admin(requester):
        raise ForbiddenError("Only club admins can view registrations")
    ann = _get_event(db, announcement_id)
    if requester.club_id != ann.club_id:
        raise ForbiddenError("You can only view registrations for your club events")
    return ann


def roster(db: Session, announcement_id: int, requester: User) -> list[tuple[EventRegistration, User]]:
    """All rows for the event regardless of status, most recent registration first."""
    ann = _owned_event(db, announcement_id, requester)
    return (
        db.query(EventRegistration, User)
        .join(User, User.id == EventRegistration.user_id)
        .filter(EventRegistration.announcement_id == ann.id)
        .order_by(EventRegistration.registered_at.desc(), EventRegistration.id.desc())
        .all()
    )


def roster_csv(db: Session, announcement_id: int, requester: User) -> str:
    rows = roster(db, announcement_id, requester)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for reg, user in rows:
        registered_at = as_utc(reg.registered_at)
        writer.writerow([
            user.name or "",
            user.email,
            user.roll_number or "",
            user.branch or "",
            registered_at.isoformat() if registered_at else "",
            reg.status.value,
        ])
    return buf.getvalue()


def my_registrations(db: Session, user: User) -> list[tuple[EventRegistration, Announcement, Club]]:
    return (
        db.query(EventRegistration, Announcement, Club)
        .join(Announcement, Announcement.id == EventRegistration.announcement_id)
        .join(Club, Club.id == Announcement.club_id)
        .filter(
            EventRegistration.user_id == user.id,
            EventRegistration.status == RegistrationStatus.registered,
        )
        .order_by(EventRegistration.registered_at.desc(), EventRegistration.id.desc())
        .all()
    )
