# tutorbill/api/routers/students.py - Student roster
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy import select, func, or_
from typing import Dict, Any, Optional
from uuid import UUID
import logging

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.models.student import Student
from tutorbill.schemas.business import BusinessProfile
from tutorbill.schemas.student import StudentCreate, StudentOut, StudentList, StudentUpdate
from tutorbill.services.business_settings import load_business_profile, rate_for_course

logger = logging.getLogger(__name__)
router = APIRouter()


def _student_out(student: Student, profile: BusinessProfile) -> StudentOut:
    out = StudentOut.model_validate(student)
    out.fee_per_class = rate_for_course(profile, student.course)
    return out


def _get_student(db: Session, student_id: UUID) -> Student:
    student = db.get(Student, student_id)
    if not student:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found"
        )
    return student


@router.post("/", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
async def create_student(
    student_data: StudentCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    new_student = Student(**student_data.model_dump())
    db.add(new_student)

    try:
        db.commit()
        db.refresh(new_student)
        logger.info(f"Student created: {new_student.name} ({new_student.course}) by {ctx['email']}")
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating student: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating student"
        )

    return _student_out(new_student, load_business_profile(db))


@router.get("/", response_model=StudentList)
async def get_students(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db),
    search: Optional[str] = Query(None, description="Search by student or parent name (partial match)"),
    course: Optional[str] = Query(None),
):
    """All students ordered by name, with the per-class fee of their course"""
    query = select(Student)

    if search:
        search_term = f"%{search.strip()}%"
        query = query.where(
            or_(
                Student.name.ilike(search_term),
                Student.parent_name.ilike(search_term),
            )
        )
    if course:
        query = query.where(Student.course == course)

    students = db.execute(query.order_by(func.lower(Student.name))).scalars().all()
    profile = load_business_profile(db)

    return StudentList(
        students=[_student_out(s, profile) for s in students],
        total=len(students)
    )


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(
    student_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return _student_out(_get_student(db, student_id), load_business_profile(db))


@router.put("/{student_id}", response_model=StudentOut)
async def update_student(
    student_id: UUID,
    student_data: StudentUpdate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    student = _get_student(db, student_id)

    for field, value in student_data.model_dump(exclude_unset=True).items():
        if value is not None or field == "photo":
            setattr(student, field, value)

    try:
        db.commit()
        db.refresh(student)
        logger.info(f"Student updated: {student.name}")
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating student: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating student"
        )

    return _student_out(student, load_business_profile(db))


@router.delete("/{student_id}")
async def delete_student(
    student_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Remove a student. Invoices keep their snapshot and are left in place."""
    student = _get_student(db, student_id)
    name = student.name

    try:
        db.delete(student)
        db.commit()
        logger.info(f"Student deleted: {name} by {ctx['email']}")
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting student: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error deleting student"
        )

    return {"message": f"Student {name} deleted"}
