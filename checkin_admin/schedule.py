from __future__ import annotations

"""
Weekly event schedule and check-in classification.

The event runs every Sunday at 09:00 UTC. Pre-registration opens at 00:00 UTC on
pre_reg_start_date (normally the Tuesday before) and closes the instant the event starts:

    scan <  pre_reg_start                 -> None (check-in refused)
    pre_reg_start <= scan < event_start   -> PRE_REGISTRATION
    scan >= event_start                   -> ACTUAL

The Actual window has no upper bound. It stays open until the schedule is rolled over.
Everything here is pure; storage lives in schedule_store.py and rollover.py.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


EVENT_START_TIME = time(9, 0)
EVENT_WEEKDAY = 6  # Sunday, date.weekday()
PRE_REG_LEAD_DAYS = 5


class RegistrationType(str, enum.Enum):
    PRE_REGISTRATION = "Pre-registration"
    ACTUAL = "Actual"


class PersonKind(str, enum.Enum):
    MEMBER = "member"
    FIRST_TIMER = "first_timer"


class CheckInMethod(str, enum.Enum):
    QR = "QR"
    FACE = "Face"


@dataclass(frozen=True)
class EventSchedule:
    pre_reg_start_date: date
    event_date: date

    @property
    def pre_reg_start(self) -> datetime:
        return datetime.combine(self.pre_reg_start_date, time(0, 0))

    @property
    def event_start(self) -> datetime:
        return datetime.combine(self.event_date, EVENT_START_TIME)

    @property
    def window_end(self) -> datetime:
        """Last instant of the event day, used to scope dashboard counts."""
        return datetime.combine(self.event_date, time.max)

    def is_valid(self) -> bool:
        return self.pre_reg_start_date < self.event_date

    def as_dict(self) -> dict:
        return {
            "pre_reg_start_date": self.pre_reg_start_date.isoformat(),
            "event_date": self.event_date.isoformat(),
        }

    @classmethod
    def from_iso(cls, pre_reg_start_date: str, event_date: str) -> "EventSchedule":
        return cls(date.fromisoformat(pre_reg_start_date), date.fromisoformat(event_date))


@dataclass(frozen=True)
class AttendanceRecord:
    id: str
    person_id: str
    person_kind: PersonKind
    timestamp: datetime
    type: RegistrationType
    method: CheckInMethod
    person_name: Optional[str] = None


def utcnow() -> datetime:
    """Current instant as a naive UTC datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def classify(scan_instant: datetime, schedule: EventSchedule) -> Optional[RegistrationType]:
    instant = to_utc_naive(scan_instant)
    if instant >= schedule.event_start:
        return RegistrationType.ACTUAL
    if instant >= schedule.pre_reg_start:
        return RegistrationType.PRE_REGISTRATION
    return None


def next_sunday(today: date) -> date:
    """The nearest Sunday on or after today."""
    return today + timedelta(days=(EVENT_WEEKDAY - today.weekday()) % 7)


def next_schedule(today: date) -> EventSchedule:
    event_date = next_sunday(today)
    return EventSchedule(pre_reg_start_date=event_date - timedelta(days=PRE_REG_LEAD_DAYS), event_date=event_date)


def is_expired(schedule: EventSchedule, today: date) -> bool:
    return today > schedule.event_date
