"""Coordinator endpoints: review and decide club-admin requests, from the API or emailed links."""
import logging
from html import escape
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.dependencies import require_coordinator
from clubhub.errors import NotFoundError
from clubhub.models.club import Club
from clubhub.models.user import User, UserRole
from clubhub.schemas.admin import AdminDecisionRequest, PendingRequestOut
from clubhub.services.auth import InvalidToken, decode_action_token
from clubhub.services.policy import (
    action_matches_request,
    approve_admin_request,
    has_pending_admin_request,
    reject_admin_request,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _pending_user(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email.lower()).first()
    if not has_pending_admin_request(user):
        raise NotFoundError("No pending admin request for this email")
    return user


@router.get("/pending-requests")
def pending_requests(
    db: Session = Depends(get_db),
    coordinator: User = Depends(require_coordinator),
):
    rows = (
        db.query(User, Club)
        .outerjoin(Club, Club.id == User.club_id)
        .filter(User.admin_requested.is_(True), User.role.is_(None))
        .order_by(User.requested_at.desc())
        .all()
    )
    requests = [
        PendingRequestOut(
            email=user.email,
            name=user.name,
            branch=user.branch,
            roll_number=user.roll_number,
            club_id=user.club_id,
            requested_at=user.requested_at,
            club_name=club.club_name if club else None,
            club_code=club.club_code if club else None,
        )
        for user, club in rows
    ]
    return {"ok": True, "requests": requests}


@router.get("/stats")
def stats(
    db: Session = Depends(get_db),
    coordinator: User = Depends(require_coordinator),
):
    admin_count = db.query(func.count(User.id)).filter(User.role == UserRole.club_admin).scalar() or 0
    pending_count = (
        db.query(func.count(User.id))
        .filter(User.admin_requested.is_(True), User.role.is_(None))
        .scalar()
        or 0
    )
    return {"ok": True, "admin_count": admin_count, "pending_count": pending_count}


@router.post("/approve-request")
def approve_request(
    data: AdminDecisionRequest,
    db: Session = Depends(get_db),
    coordinator: User = Depends(require_coordinator),
):
    user = _pending_user(db, data.email)
    approve_admin_request(user)
    db.commit()
    logger.info("Approved club admin %s (by %s)", user.email, coordinator.email)
    return {"ok": True, "message": "Approved successfully"}


@router.post("/reject-request")
def reject_request(
    data: AdminDecisionRequest,
    db: Session = Depends(get_db),
    coordinator: User = Depends(require_coordinator),
):
    user = _pending_user(db, data.email)
    reject_admin_request(user)
    db.commit()
    logger.info("Rejected club admin request from %s (by %s)", user.email, coordinator.email)
    return {"ok": True, "message": "Rejected"}


def _page(title: str, message: str, color: str, status_code: int) -> HTMLResponse:
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{escape(title)} - Club Hub</title></head>
<body style="font-family:Arial,sans-serif;text-align:center;padding:60px;">
  <h1 style="color:{color};">{escape(title)}</h1>
  <p>{escape(message)}</p>
</body>
</html>"""
    return HTMLResponse(content=html, status_code=status_code)


def _decide_via_email(db: Session, token: str | None, approve: bool) -> HTMLResponse:
    if not token:
        return _page("Invalid Link", "This link is missing its token.", "#DC2626", 400)
    try:
        action = decode_action_token(token)
    except InvalidToken:
        return _page("Link Expired", "This link is invalid or has expired. Use the admin dashboard instead.", "#DC2626", 401)
    user = db.query(User).filter(User.email == action.email).first()
    if not action_matches_request(user, action):
        return _page("Request Not Found", "This request was already handled or no longer exists.", "#D97706", 404)
    if approve:
        approve_admin_request(user)
        db.commit()
        logger.info("Approved club admin via email: %s", user.email)
        return _page("Request Approved", f"{user.email} is now a club admin.", "#10B981", 200)
    reject_admin_request(user)
    db.commit()
    logger.info("Rejected club admin via email: %s", user.email)
    return _page("Request Rejected", f"The request from {user.email} was rejected.", "#EF4444", 200)


@router.get("/approve-via-email", response_class=HTMLResponse)
def approve_via_email(token: str | None = Query(None), db: Session = Depends(get_db)):
    return _decide_via_email(db, token, approve=True)


@router.get("/reject-via-email", response_class=HTMLResponse)
def reject_via_email(token: str | None = Query(None), db: Session = Depends(get_db)):
    return _decide_via_email(db, token, approve=False)
