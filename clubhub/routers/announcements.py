"""Club announcements: feed, creation with optional image and registration policy, owner edits."""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubhub.config import get_settings
from clubhub.database import get_db
from clubhub.dependencies import get_current_user, require_club_admin
from clubhub.errors import NotFoundError, ValidationError
from clubhub.models.announcement import Announcement, AnnouncementComment, AnnouncementLike
from clubhub.models.club import Club, ClubSubscription
from clubhub.models.user import User
from clubhub.schemas.announcement import AnnouncementOut, AnnouncementUpdate
from clubhub.services.mailer import Mailer, get_mailer
from clubhub.services.notifications import Recipient, notify_subscribers
from clubhub.services.registration import as_utc
from clubhub.services.uploads import save_announcement_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/announcements", tags=["announcements"])

_TRUE_VALUES = {"true", "1", "yes", "on"}
_EMPTY_VALUES = {"", "null", "undefined"}


def _parse_bool_field(val: str | None) -> bool:
    return (val or "").strip().lower() in _TRUE_VALUES


def _parse_deadline(val: str | None) -> datetime | None:
    if val is None or val.strip().lower() in _EMPTY_VALUES:
        return None
    raw = val.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError("registration_deadline must be an ISO 8601 date/time")
    return as_utc(parsed)


def _parse_max_registrations(val: str | None) -> int | None:
    if val is None or val.strip().lower() in _EMPTY_VALUES:
        return None
    try:
        n = int(val.strip())
    except ValueError:
        raise ValidationError("max_registrations must be a whole number")
    if n < 1:
        raise ValidationError("max_registrations must be at least 1")
    return n


def _feed_query(db: Session):
    like_count = (
        select(func.count(AnnouncementLike.id))
        .where(AnnouncementLike.announcement_id == Announcement.id)
        .correlate(Announcement)
        .scalar_subquery()
    )
    comment_count = (
        select(func.count(AnnouncementComment.id))
        .where(AnnouncementComment.announcement_id == Announcement.id)
        .correlate(Announcement)
        .scalar_subquery()
    )
    return (
        db.query(Announcement, Club, User.name, like_count, comment_count)
        .join(Club, Club.id == Announcement.club_id)
        .outerjoin(User, User.email == Announcement.created_by)
        .filter(Announcement.is_active.is_(True))
        .order_by(Announcement.created_at.desc(), Announcement.id.desc())
    )


def _to_out(ann: Announcement, club: Club | None, author_name: str | None = None, likes: int = 0, comments: int = 0) -> AnnouncementOut:
    return AnnouncementOut(
        id=ann.id,
        club_id=ann.club_id,
        club_name=club.club_name if club else None,
        club_code=club.club_code if club else None,
        title=ann.title,
        content=ann.content,
        image_url=ann.image_url,
        created_by=ann.created_by,
        author_name=author_name,
        registration_enabled=bool(ann.registration_enabled),
        registration_deadline=as_utc(ann.registration_deadline),
        max_registrations=ann.max_registrations,
        like_count=likes or 0,
        comment_count=comments or 0,
        created_at=ann.created_at,
        updated_at=ann.updated_at,
    )


@router.get("")
def list_announcements(
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    rows = _feed_query(db).limit(limit).offset(offset).all()
    return {"ok": True, "announcements": [_to_out(*row) for row in rows]}


@router.get("/club/{club_id}")
def list_club_announcements(
    club_id: int,
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
):
    rows = _feed_query(db).filter(Announcement.club_id == club_id).limit(limit).all()
    return {"ok": True, "announcements": [_to_out(*row) for row in rows]}


@router.post("")
def create_announcement(
    background_tasks: BackgroundTasks,
    title: str = Form(""),
    content: str = Form(""),
    registration_enabled: str | None = Form(None),
    registration_deadline: str | None = Form(None),
    max_registrations: str | None = Form(None),
    image: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_club_admin),
    mailer: Mailer = Depends(get_mailer),
):
    if not title.strip() or not content.strip():
        raise ValidationError("title and content required")
    reg_enabled = _parse_bool_field(registration_enabled)
    deadline = _parse_deadline(registration_deadline)
    max_reg = _parse_max_registrations(max_registrations)
    image_url = save_announcement_image(image) if image is not None and image.filename else None

    ann = Announcement(
        club_id=current_user.club_id,
        title=title.strip(),
        content=content.strip(),
        image_url=image_url,
        created_by=current_user.email,
        is_active=True,
        registration_enabled=reg_enabled,
        registration_deadline=deadline,
        max_registrations=max_reg,
    )
    db.add(ann)
    db.commit()
    db.refresh(ann)
    logger.info(
        "Announcement %s created by %s (registration_enabled=%s max=%s deadline=%s)",
        ann.id, current_user.email, reg_enabled, max_reg, deadline,
    )

    club = db.query(Club).filter(Club.id == ann.club_id).first()
    subscribers = (
        db.query(User.email, User.name)
        .join(ClubSubscription, ClubSubscription.user_id == User.id)
        .filter(ClubSubscription.club_id == ann.club_id, ClubSubscription.is_active.is_(True))
        .all()
    )
    background_tasks.add_task(
        notify_subscribers,
        mailer,
        club.club_name if club else "your club",
        ann.id,
        ann.title,
        ann.content,
        [Recipient(email=email, name=name) for email, name in subscribers],
        get_settings().public_base_url,
    )
    return {"ok": True, "message": "Announcement created successfully", "announcement": _to_out(ann, club)}


def _owned_announcement(db: Session, announcement_id: int, user: User) -> Announcement:
    ann = (
        db.query(Announcement)
        .filter(
            Announcement.id == announcement_id,
            Announcement.created_by == user.email,
            Announcement.is_active.is_(True),
        )
        .first()
    )
    if not ann:
        raise NotFoundError("announcement not found or unauthorized")
    return ann


@router.put("/{announcement_id}")
def update_announcement(
    announcement_id: int,
    data: AnnouncementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not data.title.strip() or not data.content.strip():
        raise ValidationError("title and content required")
    ann = _owned_announcement(db, announcement_id, current_user)
    ann.title = data.title.strip()
    ann.content = data.content.strip()
    ann.updated_at = datetime.now(timezone.utc)
    db.commit()
    return {"ok": True, "message": "Announcement updated"}


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ann = _owned_announcement(db, announcement_id, current_user)
    ann.is_active = False
    db.commit()
    logger.info("Announcement %s deleted by %s", announcement_id, current_user.email)
    return {"ok": True, "message": "Announcement deleted"}
