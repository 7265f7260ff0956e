from __future__ import annotations

"""
Durable holders of the current EventSchedule.

Both stores expose the same two operations:
- get() -> EventSchedule | None
- compare_and_set(expected, new) -> bool, replacing the value only if it still equals
  `expected`. expected=None means "insert only if nothing is stored yet".
"""

import threading
from typing import Optional, Protocol

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import StorageFailure
from .models import SCHEDULE_ROW_ID, EventConfig
from .schedule import EventSchedule, utcnow


class ScheduleStore(Protocol):
    def get(self) -> Optional[EventSchedule]:
        ...

    def compare_and_set(self, expected: Optional[EventSchedule], new: EventSchedule) -> bool:
        ...


class InMemoryScheduleStore:
    """Process-local store, used by tests and tools that have no database."""

    def __init__(self, initial: Optional[EventSchedule] = None) -> None:
        self._value = initial
        self._lock = threading.Lock()

    def get(self) -> Optional[EventSchedule]:
        with self._lock:
            return self._value

    def compare_and_set(self, expected: Optional[EventSchedule], new: EventSchedule) -> bool:
        with self._lock:
            if self._value != expected:
                return False
            self._value = new
            return True


class SqlScheduleStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self) -> Optional[EventSchedule]:
        try:
            row = self.db.get(EventConfig, SCHEDULE_ROW_ID, populate_existing=True)
        except SQLAlchemyError as exc:
            raise StorageFailure() from exc
        if row is None:
            return None
        return EventSchedule(pre_reg_start_date=row.pre_reg_start_date, event_date=row.event_date)

    def compare_and_set(self, expected: Optional[EventSchedule], new: EventSchedule) -> bool:
        if expected is None:
            return self._insert(new)
        # Single conditional UPDATE: only the caller that still sees `expected` matches the row.
        stmt = (
            update(EventConfig)
            .where(
                EventConfig.id == SCHEDULE_ROW_ID,
                EventConfig.pre_reg_start_date == expected.pre_reg_start_date,
                EventConfig.event_date == expected.event_date,
            )
            .values(
                pre_reg_start_date=new.pre_reg_start_date,
                event_date=new.event_date,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            matched = self.db.execute(stmt).rowcount
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageFailure() from exc
        return matched == 1

    def _insert(self, new: EventSchedule) -> bool:
        self.db.add(
            EventConfig(
                id=SCHEDULE_ROW_ID,
                pre_reg_start_date=new.pre_reg_start_date,
                event_date=new.event_date,
                updated_at=utcnow(),
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # Someone else created the row first.
            self.db.rollback()
            return False
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageFailure() from exc
        return True
