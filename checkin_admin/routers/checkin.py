from __future__ import annotations

from typing import Optional, Tuple, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..deps import get_db, get_ingestor, require_token
from ..ingest import CheckInIngestor
from ..models import FirstTimer, Member, SystemLog
from ..schedule import CheckInMethod, PersonKind
from ..schemas import AttendanceOut, CheckInCreate


router = APIRouter(tags=["checkin"])

Person = Union[Member, FirstTimer]


def _resolve_person(db: Session, person_id: str, kind: PersonKind) -> Optional[Person]:
    model = Member if kind == PersonKind.MEMBER else FirstTimer
    return db.get(model, person_id)


def _resolve_qr_payload(db: Session, payload: str) -> Optional[Tuple[Person, PersonKind]]:
    member = db.execute(select(Member).where(Member.qr_code_payload == payload)).scalar_one_or_none()
    if member:
        return member, PersonKind.MEMBER
    first_timer = db.execute(select(FirstTimer).where(FirstTimer.qr_code_payload == payload)).scalar_one_or_none()
    if first_timer:
        return first_timer, PersonKind.FIRST_TIMER
    return None


@router.post("/api/checkin.create", response_model=AttendanceOut, dependencies=[Depends(require_token)])
def checkin_create(
    payload: CheckInCreate,
    db: Session = Depends(get_db),
    ingestor: CheckInIngestor = Depends(get_ingestor),
):
    """Check-in for a person already identified upstream (face match or front desk lookup)."""
    person = _resolve_person(db, payload.person_id, payload.person_kind)
    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return ingestor.ingest(
        person.id,
        payload.person_kind,
        payload.method,
        person_name=person.full_name,
        scan_instant=payload.scan_instant,
    )


@router.get("/checkin", response_model=AttendanceOut)
def qr_checkin(
    token: str = Query(...),
    payload: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    ingestor: CheckInIngestor = Depends(get_ingestor),
):
    """Kiosk QR scan. Public, guarded by the shared kiosk token."""
    settings = get_settings()
    if token != settings.qr_token:
        raise HTTPException(status_code=401, detail="Invalid token")
    found = _resolve_qr_payload(db, payload)
    if not found:
        raise HTTPException(status_code=404, detail="Invalid QR code")
    person, kind = found
    record = ingestor.ingest(person.id, kind, CheckInMethod.QR, person_name=person.full_name)
    db.add(SystemLog(actor="qr", action="checkin", entity=kind.value, entity_id=person.id, status="ok"))
    db.commit()
    return record
