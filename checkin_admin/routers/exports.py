from __future__ import annotations

import csv
import io
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..deps import get_db, require_token
from ..models import AttendanceLog, FirstTimer, Member
from ..schedule import PersonKind


router = APIRouter(prefix="/api", tags=["exports"], dependencies=[Depends(require_token)])

ATTENDANCE_FIELDS = ["id", "person_id", "person_kind", "person_name", "timestamp", "type", "method"]
MEMBER_FIELDS = [
    "id",
    "full_name",
    "nickname",
    "email",
    "phone",
    "birthday",
    "wedding_anniversary",
    "ministries",
    "lg",
    "created_at",
    "promoted_at",
]
FIRST_TIMER_FIELDS = ["id", "full_name", "email", "phone", "created_at"]


def _stream_csv(rows: Iterable[dict], filename: str, header_fields: List[str]) -> StreamingResponse:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=header_fields)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(iter([buffer.getvalue()]), media_type="text/csv", headers=headers)


def _iso(value) -> str:
    return value.isoformat() if value else ""


@router.get("/export.attendance.csv")
def export_attendance(db: Session = Depends(get_db), person_kind: Optional[PersonKind] = None):
    stmt = select(AttendanceLog).order_by(AttendanceLog.timestamp)
    if person_kind:
        stmt = stmt.where(AttendanceLog.person_kind == person_kind.value)
    items = db.execute(stmt).scalars().all()
    rows = (
        {
            "id": a.id,
            "person_id": a.person_id,
            "person_kind": a.person_kind,
            "person_name": a.person_name or "",
            "timestamp": _iso(a.timestamp),
            "type": a.type,
            "method": a.method,
        }
        for a in items
    )
    return _stream_csv(rows, "attendance.csv", ATTENDANCE_FIELDS)


@router.get("/export.members.csv")
def export_members(db: Session = Depends(get_db)):
    items = db.execute(select(Member)).scalars().all()
    rows = (
        {
            "id": m.id,
            "full_name": m.full_name,
            "nickname": m.nickname or "",
            "email": m.email or "",
            "phone": m.phone or "",
            "birthday": _iso(m.birthday),
            "wedding_anniversary": _iso(m.wedding_anniversary),
            "ministries": m.ministries or "",
            "lg": m.lg or "",
            "created_at": _iso(m.created_at),
            "promoted_at": _iso(m.promoted_at),
        }
        for m in items
    )
    return _stream_csv(rows, "members.csv", MEMBER_FIELDS)


@router.get("/export.first_timers.csv")
def export_first_timers(db: Session = Depends(get_db)):
    items = db.execute(select(FirstTimer)).scalars().all()
    rows = (
        {
            "id": f.id,
            "full_name": f.full_name,
            "email": f.email or "",
            "phone": f.phone or "",
            "created_at": _iso(f.created_at),
        }
        for f in items
    )
    return _stream_csv(rows, "first_timers.csv", FIRST_TIMER_FIELDS)
