"""Current-user profile and one-time role self-declaration."""
import logging
from urllib.parse import urlencode
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from clubhub.config import get_settings
from clubhub.database import get_db
from clubhub.dependencies import get_current_user
from clubhub.errors import NotFoundError, ValidationError
from clubhub.models.club import Club
from clubhub.models.user import User, UserRole
from clubhub.schemas.profile import MeOut, ProfileOut, ProfilePictureUpdate, ProfileUpdate
from clubhub.services.auth import create_action_token
from clubhub.services.mailer import Mailer, get_mailer
from clubhub.services.notifications import send_admin_request_email
from clubhub.services.policy import ProfileOutcome, apply_profile_update

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


def profile_out(user: User) -> ProfileOut:
    club = user.club
    return ProfileOut(
        id=user.id,
        email=user.email,
        name=user.name,
        branch=user.branch,
        roll_number=user.roll_number,
        role=user.role,
        club_id=user.club_id,
        admin_requested=bool(user.admin_requested),
        requested_at=user.requested_at,
        club_name=club.club_name if club else None,
        club_code=club.club_code if club else None,
        profile_picture=user.profile_picture,
    )


def _admin_action_urls(user: User) -> tuple[str, str]:
    base = get_settings().public_base_url.rstrip("/")
    query = urlencode({"token": create_action_token(user.email, user.club_id, user.requested_at)})
    return f"{base}/admin/approve-via-email?{query}", f"{base}/admin/reject-via-email?{query}"


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"ok": True, "user": MeOut.model_validate(current_user)}


@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return {"ok": True, "profile": profile_out(current_user)}


@router.post("/profile")
def save_profile(
    data: ProfileUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    mailer: Mailer = Depends(get_mailer),
):
    club = None
    if data.role == UserRole.club_admin and current_user.role is None:
        if data.club_id is None:
            raise ValidationError("club_id required to request club admin access")
        club = db.query(Club).filter(Club.id == data.club_id, Club.is_active.is_(True)).first()
        if not club:
            raise ValidationError("Club not found")

    outcome = apply_profile_update(
        current_user,
        name=data.name,
        branch=data.branch,
        roll_number=data.roll_number,
        role=data.role,
        club_id=data.club_id,
    )
    db.commit()
    db.refresh(current_user)

    if outcome == ProfileOutcome.admin_requested:
        logger.info("Club admin request from %s for club %s", current_user.email, club.id)
        approve_url, reject_url = _admin_action_urls(current_user)
        background_tasks.add_task(
            send_admin_request_email,
            mailer,
            get_settings().coordinators,
            current_user.email,
            current_user.name,
            club.club_name,
            approve_url,
            reject_url,
        )
        message = "Club admin request submitted! Coordinator will review your request."
    else:
        message = "Profile updated successfully"
    return {"ok": True, "message": message, "profile": profile_out(current_user)}


@router.post("/profile/picture")
def update_profile_picture(
    data: ProfilePictureUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not data.profile_picture:
        raise ValidationError("No image data provided")
    current_user.profile_picture = data.profile_picture
    db.commit()
    return {"ok": True, "message": "Profile picture updated successfully"}


@router.get("/profile/picture/{user_id}")
def get_profile_picture(user_id: int, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.profile_picture:
        raise NotFoundError("Profile picture not found")
    return {"ok": True, "profile_picture": user.profile_picture}
