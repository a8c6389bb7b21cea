"""Event registration endpoints on top of the registration ledger."""
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.dependencies import get_current_user
from clubhub.models.registration import RegistrationStatus
from clubhub.models.user import User
from clubhub.schemas.registration import MyRegistrationOut, RegistrationInfoOut, RosterEntry, RosterOut
from clubhub.services import registration as ledger
from clubhub.services.registration import as_utc

router = APIRouter(tags=["registrations"])


@router.post("/announcements/{announcement_id}/register")
def register(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ledger.register(db, announcement_id, current_user)
    return {"ok": True, "message": "Successfully registered for event!", "registered": True}


@router.post("/announcements/{announcement_id}/unregister")
def unregister(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ledger.unregister(db, announcement_id, current_user)
    return {"ok": True, "message": "Registration cancelled successfully", "registered": False}


@router.get("/announcements/{announcement_id}/registration-status")
def registration_status(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"ok": True, "registered": ledger.registration_status(db, announcement_id, current_user)}


@router.get("/announcements/{announcement_id}/registration-info", response_model=RegistrationInfoOut)
def registration_info(announcement_id: int, db: Session = Depends(get_db)):
    info = ledger.registration_info(db, announcement_id)
    return RegistrationInfoOut(
        registration_enabled=info.registration_enabled,
        current_count=info.current_count,
        max_registrations=info.max_registrations,
        is_full=info.is_full,
        deadline=info.deadline,
        deadline_passed=info.deadline_passed,
    )


@router.get("/announcements/{announcement_id}/registrations", response_model=RosterOut)
def list_registrations(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = ledger.roster(db, announcement_id, current_user)
    entries = [
        RosterEntry(
            id=reg.id,
            user_name=user.name,
            user_email=user.email,
            roll_number=user.roll_number,
            branch=user.branch,
            registered_at=as_utc(reg.registered_at),
            status=reg.status,
        )
        for reg, user in rows
    ]
    return RosterOut(
        registrations=entries,
        total_count=len(entries),
        registered_count=sum(1 for e in entries if e.status == RegistrationStatus.registered),
    )


@router.get("/announcements/{announcement_id}/registrations/export")
def export_registrations(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    csv_text = ledger.roster_csv(db, announcement_id, current_user)
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="registrations-{announcement_id}.csv"'},
    )


@router.get("/my-registrations")
def my_registrations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = ledger.my_registrations(db, current_user)
    registrations = [
        MyRegistrationOut(
            id=reg.id,
            announcement_id=ann.id,
            registered_at=as_utc(reg.registered_at),
            status=reg.status,
            title=ann.title,
            event_date=ann.created_at,
            registration_deadline=as_utc(ann.registration_deadline),
            club_name=club.club_name,
            club_code=club.club_code,
        )
        for reg, ann, club in rows
    ]
    return {"ok": True, "registrations": registrations}
