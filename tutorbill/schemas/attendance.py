# tutorbill/schemas/attendance.py
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime
from uuid import UUID


class SessionEntry(BaseModel):
    """One class session. Extra keys written by older clients are preserved."""

    date: str
    location: str = ""
    topic: str = ""
    time: Optional[str] = None
    status: Optional[str] = None  # scheduled|cancelled|None

    model_config = {"extra": "allow"}


class SessionCreate(BaseModel):
    session_date: date
    location: Optional[str] = None
    topic: str = ""
    time: Optional[str] = None


class AttendanceRecordIn(BaseModel):
    sessions: List[SessionEntry] = []


class AttendanceRecordOut(BaseModel):
    id: str
    student_id: UUID
    month: str
    year: str
    sessions: List[SessionEntry]
    class_count: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MonthRosterOut(BaseModel):
    month: str
    year: str
    records: Dict[str, AttendanceRecordOut]


class MonthSaveIn(BaseModel):
    """Sessions per student id for one month; each record is rewritten whole"""

    records: Dict[UUID, List[SessionEntry]] = Field(default_factory=dict)


class ScheduleSlot(BaseModel):
    id: Optional[str] = None
    weekday: int = Field(6, ge=0, le=6)  # 0 = Sunday
    time: str = "10:00 AM"
    topic: str = ""


class ScheduleIn(BaseModel):
    slots: List[ScheduleSlot] = []


class ScheduleOut(BaseModel):
    student_id: UUID
    slots: List[ScheduleSlot]


class ScheduleApplyOut(BaseModel):
    added: int
    record: AttendanceRecordOut
