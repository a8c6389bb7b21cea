"""Likes and comments on announcements."""
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.dependencies import get_current_user
from clubhub.errors import ForbiddenError, NotFoundError, ValidationError
from clubhub.models.announcement import Announcement, AnnouncementComment, AnnouncementLike
from clubhub.models.user import User
from clubhub.schemas.announcement import CommentCreate, CommentOut

router = APIRouter(tags=["social"])

COMMENT_MAX_LENGTH = 500


def _require_announcement(db: Session, announcement_id: int) -> Announcement:
    ann = db.query(Announcement).filter(Announcement.id == announcement_id, Announcement.is_active.is_(True)).first()
    if not ann:
        raise NotFoundError("Announcement not found")
    return ann


def _like_count(db: Session, announcement_id: int) -> int:
    return db.query(func.count(AnnouncementLike.id)).filter(AnnouncementLike.announcement_id == announcement_id).scalar() or 0


def _comment_out(comment: AnnouncementComment, user: User) -> CommentOut:
    return CommentOut(
        id=comment.id,
        announcement_id=comment.announcement_id,
        user_id=user.id,
        comment_text=comment.comment_text,
        created_at=comment.created_at,
        name=user.name,
        email=user.email,
        profile_picture=user.profile_picture,
    )


@router.post("/announcements/{announcement_id}/like")
def toggle_like(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _require_announcement(db, announcement_id)
    existing = (
        db.query(AnnouncementLike)
        .filter(AnnouncementLike.announcement_id == announcement_id, AnnouncementLike.user_id == current_user.id)
        .first()
    )
    if existing:
        db.delete(existing)
        liked = False
    else:
        db.add(AnnouncementLike(announcement_id=announcement_id, user_id=current_user.id))
        liked = True
    try:
        db.commit()
    except IntegrityError:
        # Double click raced another like from the same user
        db.rollback()
        liked = True
    return {"ok": True, "liked": liked, "like_count": _like_count(db, announcement_id)}


@router.get("/announcements/{announcement_id}/liked")
def liked_status(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    like = (
        db.query(AnnouncementLike.id)
        .filter(AnnouncementLike.announcement_id == announcement_id, AnnouncementLike.user_id == current_user.id)
        .first()
    )
    return {"ok": True, "liked": like is not None, "like_count": _like_count(db, announcement_id)}


@router.post("/announcements/{announcement_id}/comments")
def add_comment(
    announcement_id: int,
    data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    text = data.comment_text.strip()
    if not text:
        raise ValidationError("Comment text is required")
    if len(text) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment too long (max {COMMENT_MAX_LENGTH} characters)")
    _require_announcement(db, announcement_id)
    comment = AnnouncementComment(announcement_id=announcement_id, user_id=current_user.id, comment_text=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return {"ok": True, "comment": _comment_out(comment, current_user)}


@router.get("/announcements/{announcement_id}/comments")
def list_comments(announcement_id: int, db: Session = Depends(get_db)):
    rows = (
        db.query(AnnouncementComment, User)
        .join(User, User.id == AnnouncementComment.user_id)
        .filter(AnnouncementComment.announcement_id == announcement_id)
        .order_by(AnnouncementComment.created_at.desc(), AnnouncementComment.id.desc())
        .all()
    )
    comments = [_comment_out(c, u) for c, u in rows]
    return {"ok": True, "comments": comments, "count": len(comments)}


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = db.query(AnnouncementComment).filter(AnnouncementComment.id == comment_id).first()
    if not comment:
        raise NotFoundError("Comment not found")
    if comment.user_id != current_user.id:
        raise ForbiddenError("Not authorized to delete this comment")
    db.delete(comment)
    db.commit()
    return {"ok": True, "message": "Comment deleted successfully"}
