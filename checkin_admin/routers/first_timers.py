from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..deps import get_db, require_token
from ..models import FirstTimer
from ..promotion import compute_promotion_candidates, load_first_timer_records, promote_first_timer
from ..schemas import (
    DeleteRequest,
    DeleteResult,
    FirstTimerCreate,
    FirstTimerOut,
    FirstTimersListResponse,
    FirstTimerUpdate,
    MemberOut,
    PromoteRequest,
    PromotionCandidateOut,
    PromotionCandidatesResponse,
)
from .members import new_qr_payload


router = APIRouter(prefix="/api", tags=["first_timers"], dependencies=[Depends(require_token)])


@router.post("/first_timers.create", response_model=FirstTimerOut)
def first_timers_create(payload: FirstTimerCreate, db: Session = Depends(get_db)):
    first_timer = FirstTimer(
        id=str(uuid.uuid4()),
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        qr_code_payload=new_qr_payload(),
    )
    db.add(first_timer)
    db.commit()
    db.refresh(first_timer)
    return first_timer


@router.post("/first_timers.update", response_model=FirstTimerOut)
def first_timers_update(payload: FirstTimerUpdate, db: Session = Depends(get_db)):
    first_timer: Optional[FirstTimer] = db.get(FirstTimer, payload.id)
    if not first_timer:
        raise HTTPException(status_code=404, detail="First-timer not found")

    for field in ["full_name", "email", "phone"]:
        value = getattr(payload, field)
        if value is not None:
            setattr(first_timer, field, value)

    db.add(first_timer)
    db.commit()
    db.refresh(first_timer)
    return first_timer


@router.post("/first_timers.delete", response_model=DeleteResult)
def first_timers_delete(payload: DeleteRequest, db: Session = Depends(get_db)):
    first_timer: Optional[FirstTimer] = db.get(FirstTimer, payload.id)
    if not first_timer:
        raise HTTPException(status_code=404, detail="First-timer not found")
    db.delete(first_timer)
    db.commit()
    return {"ok": True, "id": payload.id}


@router.get("/first_timers.list", response_model=FirstTimersListResponse)
def first_timers_list(
    db: Session = Depends(get_db),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    q: Optional[str] = None,
):
    stmt = select(FirstTimer)
    if q:
        stmt = stmt.where(FirstTimer.full_name.ilike(f"%{q}%"))
    total = db.execute(stmt.order_by(FirstTimer.created_at.desc())).scalars().all()
    items = total[(page - 1) * page_size : page * page_size]
    return {"items": items, "total": len(total)}


@router.get("/first_timers.promotion_candidates", response_model=PromotionCandidatesResponse)
def first_timers_promotion_candidates(
    db: Session = Depends(get_db),
    threshold: Optional[int] = Query(default=None, ge=1),
    eligible_only: bool = False,
):
    """Recomputed from the full Actual log on every call."""
    threshold = threshold or get_settings().promotion_threshold
    candidates = compute_promotion_candidates(load_first_timer_records(db), threshold)
    # Only people still on the first-timer list; promoted ones keep their history but are members now.
    names = {ft.id: ft.full_name for ft in db.execute(select(FirstTimer)).scalars().all()}
    items = [
        PromotionCandidateOut(
            person_id=c.person_id,
            full_name=names[c.person_id],
            unique_actual_days=c.unique_actual_days,
            eligible=c.eligible,
        )
        for c in candidates
        if c.person_id in names and (c.eligible or not eligible_only)
    ]
    return {"items": items, "threshold": threshold}


@router.post("/first_timers.promote", response_model=MemberOut)
def first_timers_promote(payload: PromoteRequest, db: Session = Depends(get_db)):
    first_timer: Optional[FirstTimer] = db.get(FirstTimer, payload.id)
    if not first_timer:
        raise HTTPException(status_code=404, detail="First-timer not found")
    return promote_first_timer(db, first_timer, get_settings().promotion_threshold, actor=payload.promoted_by)
