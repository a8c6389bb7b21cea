"""Session issuer: password hashing, session JWTs and coordinator action tokens."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import bcrypt
import jwt
from clubhub.config import get_settings
from clubhub.database import as_utc
from clubhub.models.user import UserRole

TOKEN_TYPE_SESSION = "session"
TOKEN_TYPE_ACTION = "action"
ACTION_ADMIN_REQUEST = "admin_request"


class InvalidToken(Exception):
    """Signature mismatch, expiry, wrong token type or missing claims."""


@dataclass(frozen=True)
class TokenPayload:
    email: str
    role: UserRole | None


@dataclass(frozen=True)
class ActionPayload:
    email: str
    action: str
    club_id: int | None
    requested_at: str | None = None


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_pwd_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt()).decode("utf-8")


def _encode(payload: dict) -> str:
    settings = get_settings()
    raw = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return raw if isinstance(raw, str) else raw.decode("utf-8")


def _decode(token: str, expected_type: str) -> dict:
    if not token or not isinstance(token, str):
        raise InvalidToken("empty token")
    settings = get_settings()
    try:
        payload = jwt.decode(
            token.strip(),
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken("token expired") from e
    except jwt.PyJWTError as e:
        raise InvalidToken(str(e)) from e
    if payload.get("typ") != expected_type:
        raise InvalidToken("wrong token type")
    return payload


def create_access_token(email: str, role: UserRole | None, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    expire = now + timedelta(minutes=get_settings().jwt_access_token_expire_minutes)
    payload = {
        "sub": email.lower(),
        "role": role.value if role else None,
        "typ": TOKEN_TYPE_SESSION,
        "exp": expire,
    }
    return _encode(payload)


def decode_access_token(token: str) -> TokenPayload:
    payload = _decode(token, TOKEN_TYPE_SESSION)
    role = payload.get("role")
    try:
        return TokenPayload(email=str(payload["sub"]).lower(), role=UserRole(role) if role else None)
    except ValueError as e:
        raise InvalidToken("unknown role") from e


def request_stamp(requested_at: datetime | None) -> str | None:
    """Identifies one filed admin request; a re-filed request gets a new stamp."""
    stamped = as_utc(requested_at)
    return stamped.isoformat() if stamped else None


def create_action_token(
    email: str,
    club_id: int | None,
    requested_at: datetime | None = None,
    now: datetime | None = None,
) -> str:
    """Signed link token for one-click approve/reject of one specific club-admin request."""
    now = now or datetime.now(timezone.utc)
    expire = now + timedelta(days=get_settings().action_token_expire_days)
    payload = {
        "sub": email.lower(),
        "action": ACTION_ADMIN_REQUEST,
        "club_id": club_id,
        "requested_at": request_stamp(requested_at),
        "typ": TOKEN_TYPE_ACTION,
        "exp": expire,
    }
    return _encode(payload)


def decode_action_token(token: str) -> ActionPayload:
    payload = _decode(token, TOKEN_TYPE_ACTION)
    if payload.get("action") != ACTION_ADMIN_REQUEST:
        raise InvalidToken("unknown action")
    return ActionPayload(
        email=str(payload["sub"]).lower(),
        action=payload["action"],
        club_id=payload.get("club_id"),
        requested_at=payload.get("requested_at"),
    )
