"""Authentication: emailed one-time codes, optional password, session tokens."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.config import get_settings
from clubhub.database import get_db
from clubhub.dependencies import get_otp_ledger, send_code_rate_limit
from clubhub.errors import AuthError, ServerError, ValidationError
from clubhub.models.user import User
from clubhub.schemas.auth import (
    PASSWORD_MIN_LENGTH,
    AuthResponse,
    LoginRequest,
    SendCodeRequest,
    SendCodeResponse,
    SessionUser,
    VerifyRequest,
)
from clubhub.services.auth import create_access_token, get_password_hash, verify_password
from clubhub.services.mailer import Mailer, get_mailer
from clubhub.services.notifications import send_verification_code
from clubhub.services.otp import OtpLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _check_new_password(password: str | None, confirm: str | None) -> None:
    if password is None:
        return
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    if password != confirm:
        raise ValidationError("password and confirm do not match")


@router.post(
    "/send-code",
    response_model=SendCodeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(send_code_rate_limit)],
)
def send_code(
    data: SendCodeRequest,
    ledger: OtpLedger = Depends(get_otp_ledger),
    mailer: Mailer = Depends(get_mailer),
):
    settings = get_settings()
    email = data.email.lower()
    code = ledger.issue(email)
    if send_verification_code(mailer, email, code, settings.otp_ttl_seconds):
        return SendCodeResponse(message="Code sent")
    if settings.dev_fallback:
        logger.warning("DEV_FALLBACK enabled: returning OTP for %s in response", email)
        return SendCodeResponse(message="Code generated (dev fallback)", code=code)
    ledger.discard(email)
    raise ServerError("failed to send email")


@router.post("/verify")
def verify(
    data: VerifyRequest,
    db: Session = Depends(get_db),
    ledger: OtpLedger = Depends(get_otp_ledger),
):
    if not data.code.strip():
        raise ValidationError("email and code required")
    # Reject a bad password before touching the code so the user can retry with the same code
    _check_new_password(data.password, data.confirm)
    email = data.email.lower()
    if not ledger.consume(email, data.code):
        raise AuthError("invalid or expired code")

    user = db.query(User).filter(User.email == email).first()
    created = user is None
    if created:
        user = User(email=email, role=None, admin_requested=False)
        db.add(user)
    if data.password is not None:
        user.password_hash = get_password_hash(data.password)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent first sign-in for the same address
        db.rollback()
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            raise
        created = False
        if data.password is not None:
            user.password_hash = get_password_hash(data.password)
            db.commit()
    db.refresh(user)
    if created:
        logger.info("Created user %s", email)

    token = create_access_token(user.email, user.role)
    session_user = SessionUser(email=user.email, role=user.role).model_dump(mode="json")
    if created:
        session_user["created"] = True
    return {"ok": True, "token": token, "user": session_user}


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    email = data.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise AuthError("invalid credentials")
    if not user.password_hash:
        raise ValidationError("Password not set. Please sign up or reset password.")
    if not verify_password(data.password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise AuthError("invalid credentials")
    token = create_access_token(user.email, user.role)
    return AuthResponse(token=token, user=SessionUser(email=user.email, role=user.role))
