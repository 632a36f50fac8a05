# tutorbill/models/invoice.py
from __future__ import annotations
import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    String, Integer, Boolean, Numeric, DateTime, JSON, Uuid, CheckConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column
from tutorbill.models.base import Base


class Invoice(Base):
    """Invoice or quotation. Student and bank data are frozen snapshots, never live references."""

    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="invoice")  # invoice|quotation
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Unpaid")  # Unpaid|Paid|Quotation
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    start_month: Mapped[str] = mapped_column(String(2), nullable=False)
    start_year: Mapped[str] = mapped_column(String(4), nullable=False)
    end_month: Mapped[str] = mapped_column(String(2), nullable=False)
    end_year: Mapped[str] = mapped_column(String(4), nullable=False)
    month_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    monthly_breakdown: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    class_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    actual_attendance_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sessions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    rate_per_class: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    adjustment: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    adj_label: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    is_manual_billing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    student_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    bank_snapshot: Mapped[dict | None] = mapped_column(JSON)
    custom_invoice_no: Mapped[str | None] = mapped_column(String(32))

    paid_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("type IN ('invoice','quotation')", name="ck_invoice_type"),
        CheckConstraint("status IN ('Unpaid','Paid','Quotation')", name="ck_invoice_status"),
        CheckConstraint("month_count IN (1,2,3,4,6)", name="ck_invoice_month_count"),
        Index("ix_invoices_end_period", "end_year", "end_month"),
        Index("ix_invoices_created_at", "created_at"),
    )

    @property
    def is_quotation(self) -> bool:
        return self.type == "quotation"

    @property
    def display_number(self) -> str:
        """Custom number if one was set, else the last 8 hex digits of the id"""
        if self.custom_invoice_no:
            return self.custom_invoice_no
        return self.id.hex[-8:].upper()
