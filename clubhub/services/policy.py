"""Access policy: coordinator allow-list, club-admin predicate, role self-declaration."""
from datetime import datetime, timezone
from enum import Enum

from clubhub.config import get_settings
from clubhub.models.user import User, UserRole
from clubhub.services.auth import ActionPayload, request_stamp


class ProfileOutcome(str, Enum):
    profile_updated = "profile_updated"
    role_set = "role_set"
    admin_requested = "admin_requested"


def is_coordinator(email: str | None) -> bool:
    if not email:
        return False
    return email.strip().lower() in get_settings().coordinators


def is_club_admin(user: User) -> bool:
    return user.role == UserRole.club_admin and user.club_id is not None


def apply_profile_update(
    user: User,
    name: str | None,
    branch: str | None,
    roll_number: str | None,
    role: UserRole | None = None,
    club_id: int | None = None,
    now: datetime | None = None,
) -> ProfileOutcome:
    """Mutate user in place; the caller validates club_id and commits.

    A role can be declared once, while user.role is still NULL. Choosing
    club_admin only files a request for a coordinator to approve. Once a role
    is assigned, later calls edit name/branch/roll_number and nothing else.
    """
    user.name = name or None
    user.branch = branch or None
    user.roll_number = roll_number or None

    if role is None or user.role is not None:
        return ProfileOutcome.profile_updated
    if role == UserRole.student:
        user.role = UserRole.student
        user.admin_requested = False
        return ProfileOutcome.role_set
    user.club_id = club_id
    user.admin_requested = True
    user.requested_at = now or datetime.now(timezone.utc)
    return ProfileOutcome.admin_requested


def approve_admin_request(user: User) -> None:
    user.role = UserRole.club_admin
    user.admin_requested = False


def reject_admin_request(user: User) -> None:
    user.admin_requested = False
    user.club_id = None
    user.requested_at = None


def has_pending_admin_request(user: User | None) -> bool:
    return user is not None and bool(user.admin_requested) and user.role is None


def action_matches_request(user: User | None, action: ActionPayload) -> bool:
    """An emailed approve/reject link only acts on the request it was minted for."""
    if not has_pending_admin_request(user):
        return False
    return action.club_id == user.club_id and action.requested_at == request_stamp(user.requested_at)
