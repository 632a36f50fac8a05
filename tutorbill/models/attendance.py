# tutorbill/models/attendance.py
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, JSON, Uuid, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from tutorbill.models.base import Base


class MonthlyAttendance(Base):
    """One row per student per calendar month, keyed by "{student_id}_{MM}_{yyyy}"."""

    __tablename__ = "monthly_attendance"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # No FK: rows for deleted students are tolerated
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    month: Mapped[str] = mapped_column(String(2), nullable=False)
    year: Mapped[str] = mapped_column(String(4), nullable=False)
    sessions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    class_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("class_count >= 0", name="ck_attendance_class_count_positive"),
        Index("ix_monthly_attendance_month_year", "month", "year"),
    )
