# tutorbill/services/attendance.py - Monthly attendance documents and recurring schedules
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from tutorbill.core.config import settings
from tutorbill.core.errors import ValidationError, StoreError
from tutorbill.models.attendance import MonthlyAttendance
from tutorbill.models.schedule import Schedule

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


@dataclass(frozen=True)
class AttendanceKey:
    """Identity of one student's attendance for one calendar month"""

    student_id: uuid.UUID
    month: int
    year: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Month must be between 1 and 12, got {self.month}")
        if not 1000 <= self.year <= 9999:
            raise ValidationError(f"Year must have four digits, got {self.year}")

    @property
    def mm(self) -> str:
        return f"{self.month:02d}"

    @property
    def yyyy(self) -> str:
        return f"{self.year:04d}"

    @property
    def doc_id(self) -> str:
        return f"{self.student_id}_{self.mm}_{self.yyyy}"

    @classmethod
    def parse(cls, doc_id: str) -> "AttendanceKey":
        try:
            student, month, year = doc_id.rsplit("_", 2)
            return cls(uuid.UUID(student), int(month), int(year))
        except ValueError as e:
            raise ValidationError(f"Malformed attendance key: {doc_id}") from e


def count_classes(sessions: List[dict]) -> int:
    return sum(1 for s in sessions if s.get("status") != CANCELLED)


def _sorted_sessions(sessions: List[dict]) -> List[dict]:
    return sorted(sessions, key=lambda s: str(s.get("date", "")))


def get_record(db: Session, key: AttendanceKey) -> Optional[MonthlyAttendance]:
    return db.get(MonthlyAttendance, key.doc_id)


def month_roster(db: Session, month: int, year: int) -> Dict[uuid.UUID, MonthlyAttendance]:
    """All attendance rows for one month keyed by student id"""
    rows = db.execute(
        select(MonthlyAttendance).where(
            MonthlyAttendance.month == f"{month:02d}",
            MonthlyAttendance.year == f"{year:04d}",
        )
    ).scalars().all()
    return {row.student_id: row for row in rows}


def save_record(db: Session, key: AttendanceKey, sessions: List[dict], commit: bool = True) -> MonthlyAttendance:
    """
    Rewrite the whole attendance document for a student-month.

    Sessions are kept in date order and class_count is recomputed from them;
    concurrent writers simply overwrite each other.
    """
    ordered = _sorted_sessions([dict(s) for s in sessions])
    try:
        row = db.get(MonthlyAttendance, key.doc_id)
        if row is None:
            row = MonthlyAttendance(
                id=key.doc_id,
                student_id=key.student_id,
                month=key.mm,
                year=key.yyyy,
            )
            db.add(row)
        row.sessions = ordered
        row.class_count = count_classes(ordered)
        if commit:
            db.commit()
        else:
            db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save attendance {key.doc_id}: {e}")
        raise StoreError("Could not save attendance") from e
    return row


def save_month(db: Session, month: int, year: int, records: Dict[uuid.UUID, List[dict]]) -> List[MonthlyAttendance]:
    """Save a month's roster in one commit"""
    rows = [
        save_record(db, AttendanceKey(student_id, month, year), sessions, commit=False)
        for student_id, sessions in records.items()
    ]
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save attendance for {month:02d}/{year}: {e}")
        raise StoreError("Could not save attendance") from e
    logger.info(f"Saved attendance for {len(rows)} students ({month:02d}/{year})")
    return rows


def add_session(db: Session, key: AttendanceKey, session: dict) -> MonthlyAttendance:
    row = get_record(db, key)
    current = list(row.sessions) if row else []
    return save_record(db, key, current + [session])


def remove_session(db: Session, key: AttendanceKey, index: int) -> MonthlyAttendance:
    row = get_record(db, key)
    current = list(row.sessions) if row else []
    if not 0 <= index < len(current):
        raise ValidationError(f"No session at position {index}")
    del current[index]
    return save_record(db, key, current)


# Recurring schedules

def get_schedule(db: Session, student_id: uuid.UUID) -> List[dict]:
    row = db.get(Schedule, student_id)
    return list(row.slots) if row else []


def replace_schedule(db: Session, student_id: uuid.UUID, slots: List[dict]) -> List[dict]:
    seen = set()
    normalized = []
    for slot in slots:
        marker = (slot["weekday"], slot["time"])
        if marker in seen:
            raise ValidationError("This time slot already exists")
        seen.add(marker)
        normalized.append({**slot, "id": slot.get("id") or uuid.uuid4().hex[:12]})

    try:
        row = db.get(Schedule, student_id)
        if row is None:
            row = Schedule(student_id=student_id)
            db.add(row)
        row.slots = normalized
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save schedule for {student_id}: {e}")
        raise StoreError("Could not save schedule") from e
    return normalized


def start_of_week(day: date) -> date:
    """Sunday on or before the given day"""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def apply_schedule(db: Session, student_id: uuid.UUID, today: Optional[date] = None) -> tuple[int, MonthlyAttendance]:
    """
    Add the next four weeks of scheduled classes that fall in the current month.

    Dates already present in the month's attendance are skipped. Returns the
    number of sessions added and the attendance row.
    """
    today = today or date.today()
    slots = get_schedule(db, student_id)
    if not slots:
        raise ValidationError("No schedules to apply")

    key = AttendanceKey(student_id, today.month, today.year)
    row = get_record(db, key)
    existing = list(row.sessions) if row else []
    existing_dates = {str(s.get("date", ""))[:10] for s in existing}

    week_start = start_of_week(today)
    to_add = []
    for week in range(4):
        for slot in slots:
            class_date = week_start + timedelta(days=week * 7 + slot["weekday"])
            if class_date.month != today.month:
                continue
            date_str = class_date.isoformat()
            if date_str in existing_dates:
                continue
            to_add.append({
                "date": date_str,
                "time": slot.get("time"),
                "topic": slot.get("topic") or "Regular Class",
                "location": settings.DEFAULT_SESSION_LOCATION,
                "status": "scheduled",
            })

    if not to_add:
        return 0, row if row is not None else save_record(db, key, existing)

    saved = save_record(db, key, existing + to_add)
    logger.info(f"Applied {len(to_add)} scheduled classes for student {student_id}")
    return len(to_add), saved
