# tutorbill/services/billing.py - Invoice / quotation generation from monthly attendance
from __future__ import annotations

import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from tutorbill.core.config import settings
from tutorbill.core.errors import NotFoundError, ValidationError, StoreError
from tutorbill.models.invoice import Invoice
from tutorbill.models.student import Student
from tutorbill.schemas.business import BusinessProfile
from tutorbill.schemas.invoice import (
    GenerateInvoiceRequest, BulkGenerateRequest, InvoiceEdit, StudentSnapshot, to_money
)
from tutorbill.services.attendance import AttendanceKey, get_record
from tutorbill.services.business_settings import (
    load_business_profile, rate_for_course, resolve_bank_account
)

logger = logging.getLogger(__name__)

ALLOWED_MONTH_COUNTS = (1, 2, 3, 4, 6)
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class BillingMonth:
    month: int
    year: int

    @property
    def mm(self) -> str:
        return f"{self.month:02d}"

    @property
    def yyyy(self) -> str:
        return f"{self.year:04d}"

    @property
    def label(self) -> str:
        return f"{calendar.month_abbr[self.month]} {self.yyyy}"


def billing_months(end_month: int, end_year: int, month_count: int) -> List[BillingMonth]:
    """The month_count calendar months ending at end_month/end_year, oldest first"""
    if month_count not in ALLOWED_MONTH_COUNTS:
        raise ValidationError(f"Month count must be one of {ALLOWED_MONTH_COUNTS}, got {month_count}")
    if not 1 <= end_month <= 12:
        raise ValidationError(f"End month must be between 1 and 12, got {end_month}")

    months = []
    month, year = end_month, end_year
    for _ in range(month_count):
        months.append(BillingMonth(month, year))
        month -= 1
        if month == 0:
            month, year = 12, year - 1
    months.reverse()
    return months


def weekend_dates(months: List[BillingMonth]) -> List[date]:
    """Every Saturday and Sunday in the given months, in date order"""
    days = []
    for m in months:
        _, last_day = calendar.monthrange(m.year, m.month)
        for day in range(1, last_day + 1):
            d = date(m.year, m.month, day)
            if d.weekday() >= 5:
                days.append(d)
    return sorted(days)


def compute_total(class_count: int, rate_per_class: Decimal, adjustment: Decimal) -> Decimal:
    """Amounts are rounded to paise first so the stored row satisfies the same sum"""
    return Decimal(class_count) * to_money(rate_per_class) + to_money(adjustment)


def default_adjustment_label(adjustment: Decimal) -> str:
    return "Discount" if adjustment < 0 else "Additional Fee"


def _synthesized_session(day: date, topic: str) -> dict:
    return {
        "date": day.isoformat(),
        "location": settings.DEFAULT_SESSION_LOCATION,
        "topic": topic,
    }


def snapshot_student(student: Student) -> dict:
    return StudentSnapshot(
        name=student.name,
        parent_name=student.parent_name or "",
        phone=student.phone or "",
        email=student.email or "",
        address=student.address or "",
        course=student.course or "Beginner",
    ).model_dump()


class BillingService:
    """
    Computes and persists invoices and quotations.

    Attendance, pricing and bank accounts are read fresh for every operation.
    Nothing here is transactional across documents: generation reads
    attendance month by month, then writes one invoice row.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, invoice_id: uuid.UUID) -> Invoice:
        invoice = self.db.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(f"Could not {action}") from e

    def generate(
        self,
        request: GenerateInvoiceRequest,
        profile: Optional[BusinessProfile] = None,
    ) -> Invoice:
        """Build and store one invoice or quotation for a student and billing period"""
        student = self.db.get(Student, request.student_id)
        if student is None:
            raise NotFoundError(f"Student {request.student_id} not found")

        months = billing_months(request.end_month, request.end_year, request.month_count)
        profile = profile or load_business_profile(self.db)

        actual_count = 0
        real_sessions: List[dict] = []
        breakdown = []
        for m in months:
            record = get_record(self.db, AttendanceKey(student.id, m.month, m.year))
            class_count = record.class_count if record else 0
            sessions = list(record.sessions) if record else []
            actual_count += class_count
            real_sessions.extend(sessions)
            breakdown.append({
                "month": m.mm,
                "year": m.yyyy,
                "label": m.label,
                "class_count": class_count,
            })

        rate = rate_for_course(profile, student.course)
        if rate == 0:
            logger.warning(f"No price configured for course '{student.course}'; billing {student.name} at 0 per class")

        manual_count = request.manual_class_count
        if manual_count is None and request.session_dates:
            manual_count = len(request.session_dates)
        billable_count = manual_count if manual_count is not None else actual_count

        if request.session_dates:
            sessions = [_synthesized_session(d, "Class Session") for d in request.session_dates]
        elif manual_count is not None:
            # Fewer weekends than classes truncates the list
            sessions = [
                _synthesized_session(d, "Planned Session")
                for d in weekend_dates(months)[:billable_count]
            ]
        else:
            sessions = real_sessions

        adjustment = to_money(request.adjustment)
        rate_per_class = to_money(rate)
        total = compute_total(billable_count, rate_per_class, adjustment)
        bank = resolve_bank_account(profile, request.bank_account_id)
        is_quotation = request.type == "quotation"

        invoice = Invoice(
            type=request.type,
            status="Quotation" if is_quotation else "Unpaid",
            student_id=student.id,
            start_month=months[0].mm,
            start_year=months[0].yyyy,
            end_month=months[-1].mm,
            end_year=months[-1].yyyy,
            month_count=request.month_count,
            monthly_breakdown=breakdown,
            class_count=billable_count,
            actual_attendance_count=actual_count,
            sessions=sessions,
            rate_per_class=rate_per_class,
            adjustment=adjustment,
            adj_label=request.adj_label or default_adjustment_label(adjustment),
            total_amount=total,
            is_manual_billing=manual_count is not None,
            student_snapshot=snapshot_student(student),
            bank_snapshot=bank.model_dump() if bank else None,
            created_at=datetime.utcnow(),
        )
        self.db.add(invoice)
        self._commit("generate invoice")

        logger.info(
            f"Generated {request.type} {invoice.id} for {student.name}: "
            f"{billable_count} classes x {rate} + {adjustment} = {total}"
        )
        return invoice

    def generate_bulk(
        self,
        request: BulkGenerateRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Invoice]:
        """
        Generate invoices for each student in turn.

        Stops at the first failure and re-raises it; invoices generated before
        the failure are kept.
        """
        profile = load_business_profile(self.db)
        total = len(request.student_ids)
        generated = []

        for index, student_id in enumerate(request.student_ids, start=1):
            invoice = self.generate(
                GenerateInvoiceRequest(
                    student_id=student_id,
                    end_month=request.end_month,
                    end_year=request.end_year,
                    month_count=request.month_count,
                    manual_class_count=request.manual_class_count,
                    type="invoice",
                    bank_account_id=request.bank_account_id,
                ),
                profile=profile,
            )
            generated.append(invoice)
            if on_progress:
                on_progress(index, total)

        logger.info(f"Bulk generated {len(generated)} invoices")
        return generated

    def edit(self, invoice_id: uuid.UUID, patch: InvoiceEdit) -> Invoice:
        """Overwrite the editable fields and recompute the total"""
        invoice = self.get(invoice_id)

        invoice.class_count = patch.class_count
        invoice.rate_per_class = to_money(patch.rate_per_class)
        invoice.adjustment = to_money(patch.adjustment)
        invoice.adj_label = patch.adj_label
        invoice.total_amount = compute_total(patch.class_count, invoice.rate_per_class, invoice.adjustment)
        invoice.sessions = [s.model_dump(exclude_none=True) for s in patch.sessions]
        invoice.student_snapshot = patch.student_snapshot.model_dump()
        invoice.bank_snapshot = patch.bank_snapshot.model_dump() if patch.bank_snapshot else None
        invoice.custom_invoice_no = patch.custom_invoice_no
        self._commit("update invoice")

        logger.info(f"Invoice {invoice_id} updated, total {invoice.total_amount}")
        return invoice

    def toggle_status(self, invoice_id: uuid.UUID) -> Invoice:
        """Flip an invoice between Unpaid and Paid. Quotations cannot be paid."""
        invoice = self.get(invoice_id)
        if invoice.is_quotation:
            raise ValidationError("Quotations cannot change payment status")

        if invoice.status == "Paid":
            invoice.status = "Unpaid"
            invoice.paid_at = None
        else:
            invoice.status = "Paid"
            invoice.paid_at = datetime.utcnow()
        self._commit("update invoice status")

        logger.info(f"Invoice {invoice_id} marked {invoice.status}")
        return invoice

    def delete(self, invoice_id: uuid.UUID) -> None:
        invoice = self.get(invoice_id)
        self.db.delete(invoice)
        self._commit("delete invoice")
        logger.info(f"Invoice {invoice_id} deleted")


def list_invoices(
    db: Session,
    doc_type: Optional[str] = None,
    status: Optional[str] = None,
    student_id: Optional[uuid.UUID] = None,
) -> List[Invoice]:
    query = select(Invoice)
    if doc_type:
        query = query.where(Invoice.type == doc_type)
    if status:
        query = query.where(Invoice.status == status)
    if student_id:
        query = query.where(Invoice.student_id == student_id)
    return list(db.execute(query.order_by(Invoice.created_at.desc())).scalars().all())


def invoice_stats(invoices: List[Invoice]) -> dict:
    billable = [i for i in invoices if not i.is_quotation]
    paid = [i for i in billable if i.status == "Paid"]
    return {
        "total": len(billable),
        "paid": len(paid),
        "unpaid": sum(1 for i in billable if i.status == "Unpaid"),
        "total_amount": sum((i.total_amount for i in billable), Decimal('0')),
        "paid_amount": sum((i.total_amount for i in paid), Decimal('0')),
    }
