# tutorbill/models/schedule.py
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import DateTime, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from tutorbill.models.base import Base


class Schedule(Base):
    """Recurring weekly class slots for one student: [{id, weekday, time, topic}]"""

    __tablename__ = "schedules"

    student_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    slots: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
