"""Concurrent registrations against a real PostgreSQL database.

Set CLUBHUB_TEST_POSTGRES_URL to a throwaway database; its tables are dropped afterwards.
"""
import os
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clubhub.database import Base
from clubhub.models.announcement import Announcement
from clubhub.models.registration import EventRegistration, RegistrationStatus
from clubhub.models.user import User, UserRole
from clubhub.seed import seed_clubs
from clubhub.services import registration as ledger
from clubhub.services.registration import EventFull

POSTGRES_URL = os.environ.get("CLUBHUB_TEST_POSTGRES_URL")

pytestmark = pytest.mark.skipif(not POSTGRES_URL, reason="CLUBHUB_TEST_POSTGRES_URL not set")

SEATS = 3
CONTENDERS = 10


@pytest.fixture
def pg_sessionmaker():
    engine = create_engine(POSTGRES_URL, pool_size=CONTENDERS + 2)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield Session
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def test_concurrent_registrations_never_overfill(pg_sessionmaker):
    db = pg_sessionmaker()
    seed_clubs(db)
    admin = User(email="lead@campus.edu", role=UserRole.club_admin, club_id=1, admin_requested=False)
    students = [User(email=f"s{i}@campus.edu", role=UserRole.student, admin_requested=False) for i in range(CONTENDERS)]
    db.add_all([admin, *students])
    db.commit()
    ann = Announcement(
        club_id=1, title="Finals", content="Last seats", created_by=admin.email,
        is_active=True, registration_enabled=True, max_registrations=SEATS,
    )
    db.add(ann)
    db.commit()
    ann_id = ann.id
    student_ids = [s.id for s in students]
    db.close()

    barrier = threading.Barrier(CONTENDERS)
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt(user_id):
        session = pg_sessionmaker()
        try:
            user = session.get(User, user_id)
            barrier.wait()
            try:
                ledger.register(session, ann_id, user)
                result = "registered"
            except EventFull:
                result = "full"
            with outcomes_lock:
                outcomes.append(result)
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(uid,)) for uid in student_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["full"] * (CONTENDERS - SEATS) + ["registered"] * SEATS
    db = pg_sessionmaker()
    try:
        count = (
            db.query(EventRegistration)
            .filter(EventRegistration.announcement_id == ann_id, EventRegistration.status == RegistrationStatus.registered)
            .count()
        )
        assert count == SEATS
    finally:
        db.close()
