"""Shared dependencies: DB session, current user, role gates, OTP ledger."""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from clubhub.config import get_settings
from clubhub.database import get_db
from clubhub.errors import AuthError, ForbiddenError
from clubhub.models.user import User
from clubhub.services.auth import InvalidToken, decode_access_token
from clubhub.services.otp import OtpLedger
from clubhub.services.policy import is_club_admin, is_coordinator
from clubhub.services.rate_limit import RateLimit

security = HTTPBearer(auto_error=False)

_otp_ledger: OtpLedger | None = None

send_code_rate_limit = RateLimit("send-code", get_settings().send_code_rate_limit)


def get_otp_ledger() -> OtpLedger:
    global _otp_ledger
    if _otp_ledger is None:
        _otp_ledger = OtpLedger(ttl_seconds=get_settings().otp_ttl_seconds)
    return _otp_ledger


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    # HTTPBearer yields None for a missing header or a non-Bearer scheme
    if not credentials:
        raise AuthError("missing token")
    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidToken:
        raise AuthError("Invalid or expired token")
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        raise AuthError("User not found")
    return user


def require_coordinator(current_user: User = Depends(get_current_user)) -> User:
    if not is_coordinator(current_user.email):
        raise ForbiddenError("Access denied: Admin privileges required")
    return current_user


def require_club_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_club_admin(current_user):
        raise ForbiddenError("only club admins can create announcements")
    return current_user
