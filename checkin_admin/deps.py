from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db_session
from .ingest import CheckInIngestor, SqlAttendanceWriter
from .schedule import utcnow
from .schedule_store import SqlScheduleStore


def get_db() -> Session:
    yield from get_db_session()


def get_clock() -> Callable[[], datetime]:
    """Overridable in tests to pin 'now'."""
    return utcnow


def get_schedule_store(db: Session = Depends(get_db)) -> SqlScheduleStore:
    return SqlScheduleStore(db)


def get_ingestor(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> CheckInIngestor:
    return CheckInIngestor(SqlScheduleStore(db), SqlAttendanceWriter(db), clock=clock)


def require_token(authorization: Optional[str] = Header(default=None)) -> str:
    settings = get_settings()
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if token != settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return token
