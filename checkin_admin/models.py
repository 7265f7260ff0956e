from __future__ import annotations

"""
Persistence models: the single-row event schedule, people (members and first-timers),
the append-only attendance log, and the audit log.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base
from .schedule import utcnow


SCHEDULE_ROW_ID = 1


class EventConfig(Base):
    __tablename__ = "event_config"
    """
    Current weekly schedule. Exactly one row (id=1); replaced through compare-and-set only.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SCHEDULE_ROW_ID)
    pre_reg_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("pre_reg_start_date < event_date", name="ck_event_config_order"),
    )


class Member(Base):
    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    nickname: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    # Promoted first-timers have no birthday on file yet.
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    wedding_anniversary: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    ministries: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    lg: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    qr_code_payload: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    promoted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class FirstTimer(Base):
    __tablename__ = "first_timers"
    """
    Non-member attendee, tracked separately until promoted to Member.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    qr_code_payload: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class AttendanceLog(Base):
    __tablename__ = "attendance_logs"
    """
    One row per accepted check-in. Never updated. person_id is not a foreign key so that
    history survives promotion and deletion of the person.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    person_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    person_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    person_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)

    __table_args__ = (
        Index("ix_attendance_logs_timestamp", "timestamp"),
        Index("ix_attendance_logs_kind_type", "person_kind", "type"),
    )


class SystemLog(Base):
    __tablename__ = "system_log"
    """
    Append-only audit trail: rollovers, manual schedule edits, kiosk check-ins, promotions.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ts: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    actor: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    entity: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
