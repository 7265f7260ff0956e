from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..deps import get_clock, get_db, get_schedule_store, require_token
from ..models import SystemLog
from ..rollover import check_and_rollover, set_schedule
from ..schedule import EventSchedule
from ..schedule_store import SqlScheduleStore
from ..schemas import EventConfigOut, EventConfigSet


router = APIRouter(prefix="/api", tags=["event_config"], dependencies=[Depends(require_token)])


def _config_out(schedule: EventSchedule, rolled: bool) -> EventConfigOut:
    return EventConfigOut(
        pre_reg_start_date=schedule.pre_reg_start_date,
        event_date=schedule.event_date,
        event_start=schedule.event_start,
        rolled=rolled,
    )


@router.get("/event_config.get", response_model=EventConfigOut)
def event_config_get(
    store: SqlScheduleStore = Depends(get_schedule_store),
    clock: Callable[[], datetime] = Depends(get_clock),
    db: Session = Depends(get_db),
):
    # Page load: advance an expired schedule before showing it.
    result = check_and_rollover(store, clock().date())
    if result.rolled:
        db.add(
            SystemLog(
                actor="system",
                action="rollover",
                entity="event_config",
                entity_id=result.schedule.event_date.isoformat(),
                status="ok",
            )
        )
        db.commit()
    return _config_out(result.schedule, result.rolled)


@router.post("/event_config.set", response_model=EventConfigOut)
def event_config_set(
    payload: EventConfigSet,
    store: SqlScheduleStore = Depends(get_schedule_store),
    db: Session = Depends(get_db),
):
    schedule = set_schedule(store, EventSchedule(payload.pre_reg_start_date, payload.event_date))
    db.add(
        SystemLog(
            actor="admin",
            action="schedule_set",
            entity="event_config",
            entity_id=schedule.event_date.isoformat(),
            status="ok",
        )
    )
    db.commit()
    return _config_out(schedule, rolled=False)
