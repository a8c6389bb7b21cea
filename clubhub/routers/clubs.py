"""Clubs (public reference data) and student subscriptions."""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.dependencies import get_current_user
from clubhub.errors import NotFoundError
from clubhub.models.club import Club, ClubSubscription
from clubhub.models.user import User
from clubhub.schemas.club import ClubMemberOut, ClubOut, SubscriptionOut

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clubs"])


def _active_club(db: Session, club_id: int) -> Club:
    club = db.query(Club).filter(Club.id == club_id, Club.is_active.is_(True)).first()
    if not club:
        raise NotFoundError("Club not found")
    return club


@router.get("/clubs")
def list_clubs(db: Session = Depends(get_db)):
    clubs = db.query(Club).filter(Club.is_active.is_(True)).order_by(Club.club_name).all()
    return {"ok": True, "clubs": [ClubOut.model_validate(c) for c in clubs]}


@router.get("/clubs/{club_id}")
def get_club(club_id: int, db: Session = Depends(get_db)):
    club = _active_club(db, club_id)
    members = (
        db.query(User)
        .filter(User.club_id == club.id)
        .order_by(User.role.desc(), User.name)
        .all()
    )
    return {
        "ok": True,
        "club": ClubOut.model_validate(club),
        "members": [ClubMemberOut.model_validate(m) for m in members],
    }


@router.get("/clubs/{club_id}/subscriber-count")
def subscriber_count(club_id: int, db: Session = Depends(get_db)):
    count = (
        db.query(func.count(ClubSubscription.id))
        .filter(ClubSubscription.club_id == club_id, ClubSubscription.is_active.is_(True))
        .scalar()
    )
    return {"ok": True, "count": count or 0}


@router.post("/clubs/{club_id}/subscribe")
def subscribe(
    club_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    club = _active_club(db, club_id)
    sub = (
        db.query(ClubSubscription)
        .filter(ClubSubscription.user_id == current_user.id, ClubSubscription.club_id == club.id)
        .first()
    )
    if sub:
        sub.is_active = True
        sub.created_at = datetime.now(timezone.utc)
    else:
        db.add(ClubSubscription(user_id=current_user.id, club_id=club.id, is_active=True))
    db.commit()
    logger.info("%s subscribed to club %s", current_user.email, club.id)
    return {"ok": True, "message": "Successfully subscribed to club", "subscribed": True}


@router.post("/clubs/{club_id}/unsubscribe")
def unsubscribe(
    club_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub = (
        db.query(ClubSubscription)
        .filter(ClubSubscription.user_id == current_user.id, ClubSubscription.club_id == club_id)
        .first()
    )
    if sub:
        sub.is_active = False
        db.commit()
    logger.info("%s unsubscribed from club %s", current_user.email, club_id)
    return {"ok": True, "message": "Successfully unsubscribed from club", "subscribed": False}


@router.get("/clubs/{club_id}/subscription-status")
def subscription_status(
    club_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub = (
        db.query(ClubSubscription)
        .filter(ClubSubscription.user_id == current_user.id, ClubSubscription.club_id == club_id)
        .first()
    )
    return {"ok": True, "subscribed": bool(sub and sub.is_active)}


@router.get("/my-subscriptions")
def my_subscriptions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = (
        db.query(ClubSubscription, Club)
        .join(Club, Club.id == ClubSubscription.club_id)
        .filter(ClubSubscription.user_id == current_user.id, ClubSubscription.is_active.is_(True))
        .order_by(ClubSubscription.created_at.desc(), ClubSubscription.id.desc())
        .all()
    )
    subscriptions = [
        SubscriptionOut(
            id=club.id,
            club_name=club.club_name,
            club_code=club.club_code,
            description=club.description,
            category=club.category,
            subscribed_at=sub.created_at,
        )
        for sub, club in rows
    ]
    return {"ok": True, "subscriptions": subscriptions}
