"""Notification dispatcher: verification codes, admin-request alerts and announcement fan-out."""
import logging
from dataclasses import dataclass
from html import escape

from clubhub.services.mailer import Mailer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str | None = None


def send_verification_code(mailer: Mailer, to_email: str, code: str, ttl_seconds: int) -> bool:
    """Send the 6-digit sign-in code. The caller decides what a failure means."""
    minutes = max(1, ttl_seconds // 60)
    subject = "Your verification code"
    text_content = f"Your Club Hub verification code is: {code}. It expires in {minutes} minutes."
    html_content = f"""
    <p>Hello,</p>
    <p>Your Club Hub verification code is: <strong style="font-size:1.2em;letter-spacing:0.2em;">{code}</strong></p>
    <p>This code expires in {minutes} minutes. If you did not request this, you can ignore this email.</p>
    <p>Club Hub</p>
    """
    return mailer.send(to_email, subject, html_content, text_content=text_content)


def send_admin_request_email(
    mailer: Mailer,
    coordinators: set[str],
    requester_email: str,
    requester_name: str | None,
    club_name: str,
    approve_url: str,
    reject_url: str,
) -> int:
    """Tell every coordinator about a new club-admin request. Returns how many were sent."""
    if not coordinators:
        logger.warning("Club admin request from %s but no coordinator emails are configured", requester_email)
        return 0
    name = escape(requester_name or requester_email)
    subject = "New Club Admin Request - Club Hub"
    text_content = (
        f"{requester_name or requester_email} ({requester_email}) requested club admin access for {club_name}.\n"
        f"Approve: {approve_url}\nReject: {reject_url}\nThese links expire in 7 days."
    )
    html_content = f"""
    <p>New club admin request</p>
    <p><strong>{name}</strong> ({escape(requester_email)}) requested admin access for <strong>{escape(club_name)}</strong>.</p>
    <p><a href="{escape(approve_url)}">Approve Request</a> | <a href="{escape(reject_url)}">Reject Request</a></p>
    <p>These links expire in 7 days.</p>
    """
    sent = 0
    for coordinator in sorted(coordinators):
        if mailer.send(coordinator, subject, html_content, text_content=text_content):
            sent += 1
        else:
            logger.error("Admin request notification to %s failed (request from %s)", coordinator, requester_email)
    return sent


def _announcement_email(club_name: str, title: str, content: str, recipient: Recipient, link: str) -> tuple[str, str, str]:
    first_name = (recipient.name or "").split(" ")[0]
    greeting = f"Hi {first_name}," if first_name else "Hi,"
    subject = f"New Announcement from {club_name} - Club Hub"
    text_content = (
        f"{greeting}\n\n{club_name} posted a new announcement.\n\n{title}\n\n{content}\n\n"
        f"View: {link}\n\nYou're receiving this because you subscribed to {club_name} on Club Hub."
    )
    html_content = f"""
    <p>{escape(greeting)}</p>
    <p><strong>{escape(club_name)}</strong> posted a new announcement.</p>
    <h2>{escape(title)}</h2>
    <p style="white-space:pre-wrap;">{escape(content)}</p>
    <p><a href="{escape(link)}">View Full Announcement</a></p>
    <p style="font-size:12px;color:#6B7280;">You're receiving this because you subscribed to {escape(club_name)} on Club Hub.</p>
    """
    return subject, html_content, text_content


def notify_subscribers(
    mailer: Mailer,
    club_name: str,
    announcement_id: int,
    title: str,
    content: str,
    recipients: list[Recipient],
    base_url: str,
) -> int:
    """Email each subscriber independently; a failed recipient is logged and skipped.

    Runs as a background task after the announcement is committed, so it must never raise.
    """
    if not recipients:
        logger.info("No subscribers to notify for %s", club_name)
        return 0
    link = f"{base_url.rstrip('/')}/announcements/{announcement_id}"
    delivered = 0
    for recipient in recipients:
        try:
            subject, html_content, text_content = _announcement_email(club_name, title, content, recipient, link)
            ok = mailer.send(recipient.email, subject, html_content, text_content=text_content)
        except Exception:
            logger.exception("Failed to notify %s about announcement %s", recipient.email, announcement_id)
            continue
        if ok:
            delivered += 1
        else:
            logger.error("Failed to notify %s about announcement %s", recipient.email, announcement_id)
    logger.info(
        "Announcement %s notification: %d/%d subscribers of %s emailed",
        announcement_id, delivered, len(recipients), club_name,
    )
    return delivered
