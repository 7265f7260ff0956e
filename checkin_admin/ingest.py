from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import OutOfWindow, ScheduleNotConfigured, StorageFailure
from .models import AttendanceLog
from .schedule import AttendanceRecord, CheckInMethod, PersonKind, classify, utcnow
from .schedule_store import ScheduleStore


logger = logging.getLogger("checkin")


class AttendanceWriter(Protocol):
    def append(self, record: AttendanceRecord) -> None:
        ...


class SqlAttendanceWriter:
    def __init__(self, db: Session) -> None:
        self.db = db

    def append(self, record: AttendanceRecord) -> None:
        self.db.add(
            AttendanceLog(
                id=record.id,
                person_id=record.person_id,
                person_kind=record.person_kind.value,
                person_name=record.person_name,
                timestamp=record.timestamp,
                type=record.type.value,
                method=record.method.value,
            )
        )
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageFailure() from exc


class CheckInIngestor:
    """Classifies a scan against the stored schedule and appends one attendance record.

    The schedule is read as-is: rollover belongs to page loads, not to scans. Repeated
    scans by the same person are all recorded; promotion counting dedupes them per day.
    """

    def __init__(
        self,
        store: ScheduleStore,
        writer: AttendanceWriter,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.writer = writer
        self.clock = clock

    def ingest(
        self,
        person_id: str,
        person_kind: PersonKind,
        method: CheckInMethod,
        person_name: Optional[str] = None,
        scan_instant: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = self.clock()
        schedule = self.store.get()
        if schedule is None:
            raise ScheduleNotConfigured()

        registration_type = classify(scan_instant or now, schedule)
        if registration_type is None:
            logger.info(
                "rejected person_id=%s kind=%s method=%s reason=%s",
                person_id,
                person_kind.value,
                method.value,
                OutOfWindow.reason,
            )
            raise OutOfWindow()

        record = AttendanceRecord(
            id=str(uuid.uuid4()),
            person_id=person_id,
            person_kind=person_kind,
            person_name=person_name,
            timestamp=now,
            type=registration_type,
            method=method,
        )
        self.writer.append(record)
        logger.info(
            "accepted person_id=%s kind=%s method=%s type=%s",
            person_id,
            person_kind.value,
            method.value,
            registration_type.value,
        )
        return record
