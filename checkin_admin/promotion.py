from __future__ import annotations

"""
First-timer promotion: counting distinct Actual attendance days and promoting to Member.

Formulas:
- unique_actual_days(p) = |{ timestamp.date() : r in records, r.person_id = p,
                              r.person_kind = first_timer, r.type = Actual }|
- eligible(p) = unique_actual_days(p) >= threshold   (threshold defaults to 4)

Pre-registration scans never count, and several scans on one UTC day count once. The view
is recomputed from the full log on every call and never stored.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .errors import AlreadyPromoted, PromotionNotEligible, StorageFailure
from .models import AttendanceLog, FirstTimer, Member, SystemLog
from .schedule import PersonKind, RegistrationType, to_utc_naive, utcnow


logger = logging.getLogger("promotion")

DEFAULT_PROMOTION_THRESHOLD = 4


@dataclass(frozen=True)
class PromotionCandidate:
    person_id: str
    unique_actual_days: int
    eligible: bool


def compute_promotion_candidates(records: Iterable, threshold: int = DEFAULT_PROMOTION_THRESHOLD) -> List[PromotionCandidate]:
    """Accepts AttendanceRecord values or AttendanceLog rows (same attribute names)."""
    days_by_person: Dict[str, Set] = {}
    for record in records:
        if record.person_kind != PersonKind.FIRST_TIMER or record.type != RegistrationType.ACTUAL:
            continue
        # dicts keep first-seen order, which breaks ranking ties
        days_by_person.setdefault(record.person_id, set()).add(to_utc_naive(record.timestamp).date())

    candidates = [
        PromotionCandidate(person_id=pid, unique_actual_days=len(days), eligible=len(days) >= threshold)
        for pid, days in days_by_person.items()
    ]
    # sorted() is stable
    return sorted(candidates, key=lambda c: c.unique_actual_days, reverse=True)


def load_first_timer_records(db: Session, person_id: Optional[str] = None) -> List[AttendanceLog]:
    stmt = select(AttendanceLog).where(
        AttendanceLog.person_kind == PersonKind.FIRST_TIMER.value,
        AttendanceLog.type == RegistrationType.ACTUAL.value,
    )
    if person_id is not None:
        stmt = stmt.where(AttendanceLog.person_id == person_id)
    return list(db.execute(stmt.order_by(AttendanceLog.timestamp)).scalars().all())


def candidate_for(db: Session, first_timer_id: str, threshold: int) -> PromotionCandidate:
    found = compute_promotion_candidates(load_first_timer_records(db, first_timer_id), threshold)
    if found:
        return found[0]
    return PromotionCandidate(person_id=first_timer_id, unique_actual_days=0, eligible=False)


def promote_first_timer(db: Session, first_timer: FirstTimer, threshold: int, actor: Optional[str] = None) -> Member:
    """Turn an eligible first-timer into a Member with the same id and QR payload.

    Attendance history is left untouched; it stays keyed by the shared id. When two
    requests race on the same first-timer, the loser gets AlreadyPromoted.
    """
    person_id = first_timer.id
    candidate = candidate_for(db, person_id, threshold)
    if not candidate.eligible:
        raise PromotionNotEligible()

    member = Member(
        id=person_id,
        full_name=first_timer.full_name,
        email=first_timer.email,
        phone=first_timer.phone,
        qr_code_payload=first_timer.qr_code_payload,
        promoted_at=utcnow(),
    )
    db.delete(first_timer)
    db.add(member)
    db.add(
        SystemLog(
            actor=actor,
            action="promote",
            entity="first_timer",
            entity_id=person_id,
            status="ok",
            message=f"unique_actual_days={candidate.unique_actual_days}",
        )
    )
    try:
        db.commit()
    except (IntegrityError, StaleDataError) as exc:
        # member row already exists, or the first-timer row is already gone
        db.rollback()
        logger.info("promotion lost race first_timer=%s", person_id)
        raise AlreadyPromoted() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageFailure() from exc
    db.refresh(member)
    logger.info("promoted first_timer=%s days=%s", member.id, candidate.unique_actual_days)
    return member
