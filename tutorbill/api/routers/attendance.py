# tutorbill/api/routers/attendance.py - Monthly attendance documents
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from typing import Annotated, Dict, Any
from uuid import UUID
import logging

from tutorbill.core.config import settings
from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.schemas.attendance import (
    AttendanceRecordIn,
    AttendanceRecordOut,
    MonthRosterOut,
    MonthSaveIn,
    SessionCreate,
)
from tutorbill.services.attendance import (
    AttendanceKey,
    get_record,
    month_roster,
    save_record,
    save_month,
    add_session,
    remove_session,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _empty_record(key: AttendanceKey) -> AttendanceRecordOut:
    return AttendanceRecordOut(
        id=key.doc_id, student_id=key.student_id, month=key.mm, year=key.yyyy,
        sessions=[], class_count=0
    )


@router.get("/{year}/{month}", response_model=MonthRosterOut)
async def get_month(
    year: Annotated[int, Path(ge=1000, le=9999)],
    month: Annotated[int, Path(ge=1, le=12)],
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Every student's attendance for one month, keyed by student id"""
    roster = month_roster(db, month, year)
    return MonthRosterOut(
        month=f"{month:02d}",
        year=f"{year:04d}",
        records={str(sid): AttendanceRecordOut.model_validate(row) for sid, row in roster.items()}
    )


@router.put("/{year}/{month}", response_model=MonthRosterOut)
async def save_month_roster(
    year: Annotated[int, Path(ge=1000, le=9999)],
    month: Annotated[int, Path(ge=1, le=12)],
    payload: MonthSaveIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Rewrite the attendance of every student included in the payload"""
    rows = save_month(
        db, month, year,
        {sid: [s.model_dump(exclude_none=True) for s in sessions] for sid, sessions in payload.records.items()}
    )
    return MonthRosterOut(
        month=f"{month:02d}",
        year=f"{year:04d}",
        records={str(row.student_id): AttendanceRecordOut.model_validate(row) for row in rows}
    )


@router.get("/{year}/{month}/{student_id}", response_model=AttendanceRecordOut)
async def get_student_month(
    year: Annotated[int, Path(ge=1000, le=9999)],
    month: Annotated[int, Path(ge=1, le=12)],
    student_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    key = AttendanceKey(student_id, month, year)
    row = get_record(db, key)
    return AttendanceRecordOut.model_validate(row) if row else _empty_record(key)


@router.put("/{year}/{month}/{student_id}", response_model=AttendanceRecordOut)
async def put_student_month(
    year: Annotated[int, Path(ge=1000, le=9999)],
    month: Annotated[int, Path(ge=1, le=12)],
    student_id: UUID,
    payload: AttendanceRecordIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    key = AttendanceKey(student_id, month, year)
    row = save_record(db, key, [s.model_dump(exclude_none=True) for s in payload.sessions])
    logger.info(f"Attendance {key.doc_id} saved with {row.class_count} classes")
    return AttendanceRecordOut.model_validate(row)


@router.post(
    "/{year}/{month}/{student_id}/sessions",
    response_model=AttendanceRecordOut,
    status_code=status.HTTP_201_CREATED
)
async def create_session(
    year: Annotated[int, Path(ge=1000, le=9999)],
    month: Annotated[int, Path(ge=1, le=12)],
    student_id: UUID,
    session: SessionCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    key = AttendanceKey(student_id, month, year)
    entry = {
        "date": session.session_date.isoformat(),
        "location": session.location or settings.DEFAULT_SESSION_LOCATION,
        "topic": session.topic,
    }
    if session.time:
        entry["time"] = session.time
    return AttendanceRecordOut.model_validate(add_session(db, key, entry))


@router.delete("/{year}/{month}/{student_id}/sessions/{index}", response_model=AttendanceRecordOut)
async def delete_session(
    year: Annotated[int, Path(ge=1000, le=9999)],
    month: Annotated[int, Path(ge=1, le=12)],
    student_id: UUID,
    index: int,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Remove the session at a position in the date-ordered list"""
    key = AttendanceKey(student_id, month, year)
    return AttendanceRecordOut.model_validate(remove_session(db, key, index))

