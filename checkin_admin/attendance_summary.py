from __future__ import annotations

"""
Dashboard counts for the current event window.

The window runs from pre_reg_start_date 00:00 UTC to the last instant of event_date, so a
week's dashboard covers both pre-registrations and the day-of crowd. Counts:
- pre_registrations / actual: records by registration type
- by_method: QR vs Face
- unique_people: distinct person_id
"""

from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import AttendanceLog
from .schedule import CheckInMethod, EventSchedule, RegistrationType, to_utc_naive


def summarize_window(records: Iterable, schedule: EventSchedule) -> dict:
    start = schedule.pre_reg_start
    end = schedule.window_end
    by_type: Dict[str, int] = {t.value: 0 for t in RegistrationType}
    by_method: Dict[str, int] = {m.value: 0 for m in CheckInMethod}
    people = set()
    for record in records:
        ts = to_utc_naive(record.timestamp)
        if ts < start or ts > end:
            continue
        by_type[str(getattr(record.type, "value", record.type))] += 1
        by_method[str(getattr(record.method, "value", record.method))] += 1
        people.add(record.person_id)
    return {
        "pre_registrations": by_type[RegistrationType.PRE_REGISTRATION.value],
        "actual": by_type[RegistrationType.ACTUAL.value],
        "by_method": by_method,
        "unique_people": len(people),
    }


def load_window_records(db: Session, schedule: EventSchedule) -> list:
    stmt = select(AttendanceLog).where(
        AttendanceLog.timestamp >= schedule.pre_reg_start,
        AttendanceLog.timestamp <= schedule.window_end,
    )
    return list(db.execute(stmt).scalars().all())
