# tutorbill/api/routers/schedules.py - Recurring weekly class slots
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from datetime import date
from uuid import UUID
import logging

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.schemas.attendance import (
    AttendanceRecordOut,
    ScheduleIn,
    ScheduleOut,
    ScheduleApplyOut,
)
from tutorbill.services.attendance import get_schedule, replace_schedule, apply_schedule

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{student_id}", response_model=ScheduleOut)
async def get_student_schedule(
    student_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return ScheduleOut(student_id=student_id, slots=get_schedule(db, student_id))


@router.put("/{student_id}", response_model=ScheduleOut)
async def put_student_schedule(
    student_id: UUID,
    payload: ScheduleIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Replace the student's slot list; the same weekday and time may appear once"""
    slots = replace_schedule(db, student_id, [s.model_dump() for s in payload.slots])
    logger.info(f"Schedule for {student_id} saved with {len(slots)} slots")
    return ScheduleOut(student_id=student_id, slots=slots)


@router.post("/{student_id}/apply", response_model=ScheduleApplyOut)
async def apply_student_schedule(
    student_id: UUID,
    today: Optional[date] = Query(None, description="Defaults to the current date"),
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Add the next four weeks of scheduled classes that fall in the current month"""
    added, row = apply_schedule(db, student_id, today=today)
    return ScheduleApplyOut(added=added, record=AttendanceRecordOut.model_validate(row))
