# tutorbill/schemas/invoice.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal, Any
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from uuid import UUID

from tutorbill.schemas.attendance import SessionEntry
from tutorbill.schemas.business import BankAccount

DocumentType = Literal["invoice", "quotation"]
InvoiceStatus = Literal["Unpaid", "Paid", "Quotation"]

PAISE = Decimal('0.01')


def to_money(value) -> Decimal:
    """Round to paise, matching the Numeric(12, 2) invoice columns"""
    return Decimal(value).quantize(PAISE, rounding=ROUND_HALF_UP)


def coerce_amount(value: Any) -> Decimal:
    """Lenient numeric parse: blanks and garbage become zero"""
    if value is None or isinstance(value, bool):
        return Decimal('0.00')
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            return Decimal('0.00')
        return to_money(amount)
    except (InvalidOperation, ValueError):
        return Decimal('0.00')


class MonthlyBreakdownEntry(BaseModel):
    month: str
    year: str
    label: str
    class_count: int


class StudentSnapshot(BaseModel):
    name: str = ""
    parent_name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    course: str = ""


class GenerateInvoiceRequest(BaseModel):
    student_id: UUID
    end_month: int = Field(..., ge=1, le=12)
    end_year: int = Field(..., ge=1000, le=9999)
    month_count: int = 1
    manual_class_count: Optional[int] = Field(None, ge=0)
    session_dates: List[date] = []
    adjustment: Decimal = Decimal('0')
    adj_label: Optional[str] = None
    type: DocumentType = "invoice"
    bank_account_id: Optional[str] = None

    @field_validator('adjustment', mode='before')
    @classmethod
    def parse_adjustment(cls, v: Any) -> Decimal:
        return coerce_amount(v)


class BulkGenerateRequest(BaseModel):
    student_ids: List[UUID] = Field(..., min_length=1)
    end_month: int = Field(..., ge=1, le=12)
    end_year: int = Field(..., ge=1000, le=9999)
    month_count: int = 1
    manual_class_count: Optional[int] = Field(None, ge=0)
    bank_account_id: Optional[str] = None


class BulkGenerateResponse(BaseModel):
    generated: int
    total: int
    invoice_ids: List[UUID]


class InvoiceEdit(BaseModel):
    """Wholesale rewrite of the editable invoice fields"""

    class_count: int = Field(..., ge=0)
    rate_per_class: Decimal = Field(..., ge=0)
    adjustment: Decimal = Decimal('0')
    adj_label: str = ""
    sessions: List[SessionEntry] = []
    student_snapshot: StudentSnapshot
    bank_snapshot: Optional[BankAccount] = None
    custom_invoice_no: Optional[str] = Field(None, max_length=32)

    @field_validator('adjustment', mode='before')
    @classmethod
    def parse_adjustment(cls, v: Any) -> Decimal:
        return coerce_amount(v)

    @field_validator('rate_per_class')
    @classmethod
    def round_rate(cls, v: Decimal) -> Decimal:
        return to_money(v)


class InvoiceOut(BaseModel):
    id: UUID
    type: DocumentType
    status: InvoiceStatus
    student_id: UUID
    start_month: str
    start_year: str
    end_month: str
    end_year: str
    month_count: int
    monthly_breakdown: List[MonthlyBreakdownEntry]
    class_count: int
    actual_attendance_count: int
    sessions: List[SessionEntry]
    rate_per_class: Decimal
    adjustment: Decimal
    adj_label: str
    total_amount: Decimal
    is_manual_billing: bool
    student_snapshot: StudentSnapshot
    bank_snapshot: Optional[BankAccount] = None
    custom_invoice_no: Optional[str] = None
    display_number: str
    paid_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceStatusOut(BaseModel):
    id: UUID
    status: InvoiceStatus
    paid_at: Optional[datetime] = None


class InvoiceStats(BaseModel):
    total: int
    paid: int
    unpaid: int
    total_amount: Decimal
    paid_amount: Decimal


class BusinessDetails(BaseModel):
    name: str
    tagline: str
    address: str
    email: str
    phone: str
    website: str
    gstin: str
    pan: str


class PublicInvoiceOut(BaseModel):
    invoice: InvoiceOut
    business: BusinessDetails
    bank: Optional[BankAccount] = None
    upi_id: str
    upi_payload: Optional[str] = None
    amount_in_words: str
    period: str
    due_date: date
    is_paid: bool
