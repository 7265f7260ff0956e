from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from .errors import ScheduleNotConfigured, ScheduleValidationError, StorageFailure
from .schedule import EventSchedule, is_expired, next_schedule
from .schedule_store import ScheduleStore


logger = logging.getLogger("schedule")

# Manual edits retry when a rollover lands between their read and write.
SET_SCHEDULE_ATTEMPTS = 3


@dataclass(frozen=True)
class RolloverResult:
    schedule: EventSchedule
    rolled: bool


def check_and_rollover(store: ScheduleStore, today: date) -> RolloverResult:
    """Return the current schedule, advancing it to the next Sunday if its event date has passed.

    Called once per schedule page load. At most one concurrent caller wins the write; the
    others re-read and get the winner's schedule with rolled=False.
    """
    current = store.get()
    if current is None:
        raise ScheduleNotConfigured()
    if not is_expired(current, today):
        return RolloverResult(schedule=current, rolled=False)

    proposed = next_schedule(today)
    if store.compare_and_set(current, proposed):
        logger.info(
            "rollover from=%s to=%s pre_reg_start=%s",
            current.event_date.isoformat(),
            proposed.event_date.isoformat(),
            proposed.pre_reg_start_date.isoformat(),
        )
        return RolloverResult(schedule=proposed, rolled=True)

    winner = store.get()
    if winner is None:
        raise StorageFailure()
    logger.info("rollover lost race; current event_date=%s", winner.event_date.isoformat())
    return RolloverResult(schedule=winner, rolled=False)


def set_schedule(store: ScheduleStore, schedule: EventSchedule) -> EventSchedule:
    """Administrator edit. Bypasses rollover and only checks pre_reg_start_date < event_date."""
    if not schedule.is_valid():
        raise ScheduleValidationError()
    for _ in range(SET_SCHEDULE_ATTEMPTS):
        current = store.get()
        if current == schedule:
            return schedule
        if store.compare_and_set(current, schedule):
            logger.info(
                "schedule set pre_reg_start=%s event_date=%s",
                schedule.pre_reg_start_date.isoformat(),
                schedule.event_date.isoformat(),
            )
            return schedule
    raise StorageFailure()
