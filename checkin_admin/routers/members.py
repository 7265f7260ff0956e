from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..deps import get_db, require_token
from ..models import Member
from ..schemas import (
    DeleteRequest,
    DeleteResult,
    MemberBatchCreate,
    MemberBatchResult,
    MemberCreate,
    MemberOut,
    MembersListResponse,
    MemberUpdate,
)


router = APIRouter(prefix="/api", tags=["members"], dependencies=[Depends(require_token)])

logger = logging.getLogger("members")

MEMBER_FIELDS = ["full_name", "nickname", "email", "phone", "birthday", "wedding_anniversary", "ministries", "lg"]

# Spreadsheet serial day 0
EXCEL_EPOCH = date(1899, 12, 30)


def new_qr_payload() -> str:
    return uuid.uuid4().hex


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def parse_import_date(value: Union[float, str, None]) -> Optional[date]:
    """ISO date (time part ignored) or Excel serial number; None when missing or unparseable."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return EXCEL_EPOCH + timedelta(days=int(value))
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text.split("T")[0])
    except ValueError:
        return None


@router.post("/members.create", response_model=MemberOut)
def members_create(payload: MemberCreate, db: Session = Depends(get_db)):
    member = Member(id=str(uuid.uuid4()), qr_code_payload=new_qr_payload())
    for field in MEMBER_FIELDS:
        setattr(member, field, getattr(payload, field))
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@router.post("/members.batch_create", response_model=MemberBatchResult)
def members_batch_create(payload: MemberBatchCreate, db: Session = Depends(get_db)):
    """Import spreadsheet rows. Rows without a name or a usable birthday are skipped."""
    members = []
    for row in payload.items:
        full_name = _clean(row.full_name)
        if not full_name:
            logger.warning("skipping import row without full_name")
            continue
        birthday = parse_import_date(row.birthday)
        if birthday is None:
            logger.warning("skipping import row for %s: missing or invalid birthday", full_name)
            continue
        members.append(
            Member(
                id=str(uuid.uuid4()),
                full_name=full_name,
                nickname=_clean(row.nickname),
                email=_clean(row.email),
                phone=_clean(row.phone),
                birthday=birthday,
                wedding_anniversary=parse_import_date(row.wedding_anniversary),
                ministries=_clean(row.ministries),
                lg=_clean(row.lg),
                qr_code_payload=new_qr_payload(),
            )
        )

    if members:
        db.add_all(members)
        db.commit()
        for member in members:
            db.refresh(member)
    skipped = len(payload.items) - len(members)
    logger.info("imported members=%s skipped=%s", len(members), skipped)
    return {"items": members, "skipped": skipped}


@router.post("/members.update", response_model=MemberOut)
def members_update(payload: MemberUpdate, db: Session = Depends(get_db)):
    member: Optional[Member] = db.get(Member, payload.id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    for field in MEMBER_FIELDS:
        value = getattr(payload, field)
        if value is not None:
            setattr(member, field, value)

    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@router.post("/members.delete", response_model=DeleteResult)
def members_delete(payload: DeleteRequest, db: Session = Depends(get_db)):
    """Attendance rows are kept; they carry the person's name at check-in time."""
    member: Optional[Member] = db.get(Member, payload.id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    db.delete(member)
    db.commit()
    return {"ok": True, "id": payload.id}


@router.get("/members.list", response_model=MembersListResponse)
def members_list(
    db: Session = Depends(get_db),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    promoted: Optional[bool] = None,
    q: Optional[str] = None,
):
    stmt = select(Member)
    if promoted is not None:
        stmt = stmt.where(Member.promoted_at.is_not(None) if promoted else Member.promoted_at.is_(None))
    if q:
        stmt = stmt.where(Member.full_name.ilike(f"%{q}%"))

    total = db.execute(stmt.order_by(Member.full_name)).scalars().all()
    items = total[(page - 1) * page_size : page * page_size]
    return {"items": items, "total": len(total)}
