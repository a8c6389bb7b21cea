import os
import re
import tempfile

# Settings are cached on first import, so the test environment must be in place before clubhub loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["COORDINATOR_EMAILS"] = "boss@campus.edu"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="clubhub-uploads-")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["DEV_FALLBACK"] = "false"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clubhub.database import Base, get_db
from clubhub.dependencies import get_otp_ledger, send_code_rate_limit
from clubhub.main import app
from clubhub.models.announcement import Announcement
from clubhub.models.club import Club
from clubhub.models.user import User, UserRole
from clubhub.seed import seed_clubs
from clubhub.services.auth import create_access_token, get_password_hash
from clubhub.services.mailer import get_mailer
from clubhub.services.otp import OtpLedger

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeMailer:
    """Records messages; addresses in fail_for (or every address when fail_all) fail."""

    configured = True

    def __init__(self):
        self.sent = []
        self.fail_for = set()
        self.fail_all = False

    def send(self, to_email, subject, html_content, text_content=None):
        if self.fail_all or to_email in self.fail_for:
            return False
        self.sent.append({"to": to_email, "subject": subject, "html": html_content, "text": text_content or ""})
        return True

    def close(self):
        pass

    def to(self, email):
        return [m for m in self.sent if m["to"] == email]

    def last_code(self, email):
        messages = self.to(email)
        assert messages, f"no email sent to {email}"
        return re.search(r"\b(\d{6})\b", messages[-1]["text"]).group(1)


class Clock:
    def __init__(self, now=None):
        self.now = now or datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    seed_clubs(db)
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def otp_ledger(clock):
    return OtpLedger(ttl_seconds=300, clock=clock)


@pytest.fixture(autouse=True)
def reset_rate_limit():
    send_code_rate_limit.reset()
    yield
    send_code_rate_limit.reset()


@pytest.fixture
def client(db_session, mailer, otp_ledger):
    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_otp_ledger] = lambda: otp_ledger
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def clubs(db_session):
    return {c.club_code: c for c in db_session.query(Club).all()}


def make_user(db, email, role=None, club_id=None, password=None, name=None, **fields):
    user = User(
        email=email.lower(),
        role=role,
        club_id=club_id,
        password_hash=get_password_hash(password) if password else None,
        name=name,
        admin_requested=fields.pop("admin_requested", False),
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_header(user):
    return {"Authorization": f"Bearer {create_access_token(user.email, user.role)}"}


def make_event(db, club_id, created_by, max_registrations=None, deadline=None, enabled=True, title="Hackathon"):
    ann = Announcement(
        club_id=club_id,
        title=title,
        content="Bring a laptop.",
        created_by=created_by,
        is_active=True,
        registration_enabled=enabled,
        registration_deadline=deadline,
        max_registrations=max_registrations,
    )
    db.add(ann)
    db.commit()
    db.refresh(ann)
    return ann


@pytest.fixture
def club_admin(db_session, clubs):
    return make_user(db_session, "lead@campus.edu", role=UserRole.club_admin, club_id=clubs["CODE"].id, name="Coding Lead")


@pytest.fixture
def coordinator(db_session):
    return make_user(db_session, "boss@campus.edu", role=UserRole.student, name="Coordinator")
