# tutorbill/api/routers/analytics.py - Revenue and attendance dashboards
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Dict, Any, Optional
from datetime import date
import logging

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.models.attendance import MonthlyAttendance
from tutorbill.models.expense import Expense
from tutorbill.models.invoice import Invoice
from tutorbill.models.student import Student
from tutorbill.services import analytics
from tutorbill.services.business_settings import load_business_profile

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/stats")
async def get_stats(
    months: int = Query(6, ge=1, le=24),
    today: Optional[date] = Query(None),
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Monthly revenue and classes, course mix and most active students"""
    today = today or date.today()
    invoices = db.execute(select(Invoice)).scalars().all()
    attendance = db.execute(select(MonthlyAttendance)).scalars().all()
    students = db.execute(select(Student)).scalars().all()

    monthly = analytics.monthly_stats(invoices, attendance, today, months=months)
    return {
        "monthly": monthly,
        "total_revenue": sum(m["revenue"] for m in monthly),
        "total_paid": sum(m["paid"] for m in monthly),
        "total_classes": sum(m["classes"] for m in monthly),
        "course_distribution": analytics.course_distribution(students),
        "top_students": analytics.top_students(attendance, students),
    }


@router.get("/insights")
async def get_insights(
    today: Optional[date] = Query(None),
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Growth, forecast, profit and churn risk for the current month"""
    students = list(db.execute(select(Student)).scalars().all())
    attendance = list(db.execute(select(MonthlyAttendance)).scalars().all())
    expenses = list(db.execute(select(Expense)).scalars().all())
    pricing = load_business_profile(db).pricing

    return analytics.insights(students, attendance, expenses, pricing, today or date.today())
