from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from .schedule import CheckInMethod, PersonKind, RegistrationType


# Event schedule
class EventConfigSet(BaseModel):
    pre_reg_start_date: date
    event_date: date


class EventConfigOut(BaseModel):
    pre_reg_start_date: date
    event_date: date
    event_start: datetime
    rolled: bool = False


# Members
class MemberCreate(BaseModel):
    full_name: str = Field(min_length=1)
    nickname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[date] = None
    wedding_anniversary: Optional[date] = None
    ministries: Optional[str] = None
    lg: Optional[str] = None


class MemberUpdate(BaseModel):
    id: str
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[date] = None
    wedding_anniversary: Optional[date] = None
    ministries: Optional[str] = None
    lg: Optional[str] = None


class MemberOut(BaseModel):
    id: str
    full_name: str
    nickname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[date] = None
    wedding_anniversary: Optional[date] = None
    ministries: Optional[str] = None
    lg: Optional[str] = None
    qr_code_payload: str
    created_at: datetime
    promoted_at: Optional[datetime] = None

    model_config = dict(from_attributes=True)


class MembersListResponse(BaseModel):
    items: List[MemberOut]
    total: int


class MemberImportRow(BaseModel):
    """One spreadsheet row; accepts the sheet headers (FullName, Birthday, ...) or field names.

    Dates may be ISO strings or Excel serial day numbers.
    """

    full_name: Optional[str] = Field(default=None, alias="FullName")
    nickname: Optional[str] = Field(default=None, alias="Nickname")
    email: Optional[str] = Field(default=None, alias="Email")
    phone: Optional[str] = Field(default=None, alias="Phone")
    birthday: Union[float, str, None] = Field(default=None, alias="Birthday")
    wedding_anniversary: Union[float, str, None] = Field(default=None, alias="WeddingAnniversary")
    ministries: Optional[str] = Field(default=None, alias="Ministries")
    lg: Optional[str] = Field(default=None, alias="LG")

    model_config = dict(populate_by_name=True)


class MemberBatchCreate(BaseModel):
    items: List[MemberImportRow]


class MemberBatchResult(BaseModel):
    items: List[MemberOut]
    skipped: int


class DeleteRequest(BaseModel):
    id: str


class DeleteResult(BaseModel):
    ok: bool = True
    id: str


# First-timers
class FirstTimerCreate(BaseModel):
    full_name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None


class FirstTimerUpdate(BaseModel):
    id: str
    full_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None


class FirstTimerOut(BaseModel):
    id: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    qr_code_payload: str
    created_at: datetime

    model_config = dict(from_attributes=True)


class FirstTimersListResponse(BaseModel):
    items: List[FirstTimerOut]
    total: int


class PromotionCandidateOut(BaseModel):
    person_id: str
    full_name: Optional[str] = None
    unique_actual_days: int
    eligible: bool


class PromotionCandidatesResponse(BaseModel):
    items: List[PromotionCandidateOut]
    threshold: int


class PromoteRequest(BaseModel):
    id: str
    promoted_by: Optional[str] = None


# Check-ins
class CheckInCreate(BaseModel):
    person_id: str
    person_kind: PersonKind
    method: CheckInMethod = CheckInMethod.QR
    # Instant reported by the upstream QR or face-match tool; defaults to server time.
    scan_instant: Optional[datetime] = None


class AttendanceOut(BaseModel):
    id: str
    person_id: str
    person_kind: PersonKind
    person_name: Optional[str] = None
    timestamp: datetime
    type: RegistrationType
    method: CheckInMethod

    model_config = dict(from_attributes=True)


class AttendanceListResponse(BaseModel):
    items: List[AttendanceOut]
    total: int


class AttendanceSummary(BaseModel):
    pre_reg_start_date: date
    event_date: date
    pre_registrations: int
    actual: int
    by_method: dict[str, int]
    unique_people: int
    total_members: int
    total_first_timers: int
