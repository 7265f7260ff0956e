from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..attendance_summary import load_window_records, summarize_window
from ..deps import get_db, get_schedule_store, require_token
from ..errors import ScheduleNotConfigured
from ..models import AttendanceLog, FirstTimer, Member
from ..schedule import CheckInMethod, PersonKind, RegistrationType
from ..schedule_store import SqlScheduleStore
from ..schemas import AttendanceListResponse, AttendanceSummary


router = APIRouter(prefix="/api", tags=["attendance"], dependencies=[Depends(require_token)])


@router.get("/attendance.list", response_model=AttendanceListResponse)
def attendance_list(
    db: Session = Depends(get_db),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    type: Optional[RegistrationType] = None,
    method: Optional[CheckInMethod] = None,
    person_kind: Optional[PersonKind] = None,
    person_id: Optional[str] = None,
):
    stmt = select(AttendanceLog)
    if type:
        stmt = stmt.where(AttendanceLog.type == type.value)
    if method:
        stmt = stmt.where(AttendanceLog.method == method.value)
    if person_kind:
        stmt = stmt.where(AttendanceLog.person_kind == person_kind.value)
    if person_id:
        stmt = stmt.where(AttendanceLog.person_id == person_id)

    total = db.execute(stmt.order_by(AttendanceLog.timestamp.desc())).scalars().all()
    items = total[(page - 1) * page_size : page * page_size]
    return {"items": items, "total": len(total)}


@router.get("/attendance.summary", response_model=AttendanceSummary)
def attendance_summary(
    db: Session = Depends(get_db),
    store: SqlScheduleStore = Depends(get_schedule_store),
):
    """Counts for the current window. Reads the schedule as stored; no rollover here."""
    schedule = store.get()
    if schedule is None:
        raise ScheduleNotConfigured()
    counts = summarize_window(load_window_records(db, schedule), schedule)
    return AttendanceSummary(
        pre_reg_start_date=schedule.pre_reg_start_date,
        event_date=schedule.event_date,
        total_members=int(db.execute(select(func.count()).select_from(Member)).scalar_one()),
        total_first_timers=int(db.execute(select(func.count()).select_from(FirstTimer)).scalar_one()),
        **counts,
    )
