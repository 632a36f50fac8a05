# tutorbill/api/routers/invoices.py - Invoice and quotation generation, editing and payment status
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from uuid import UUID
import logging

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.models.student import Student
from tutorbill.schemas.invoice import (
    GenerateInvoiceRequest,
    BulkGenerateRequest,
    BulkGenerateResponse,
    InvoiceEdit,
    InvoiceOut,
    InvoiceStatusOut,
    InvoiceStats,
    DocumentType,
    InvoiceStatus,
)
from tutorbill.services.billing import BillingService, list_invoices, invoice_stats
from tutorbill.services.business_settings import load_business_profile
from tutorbill.services.messaging import compose

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/generate", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
async def generate_invoice(
    request: GenerateInvoiceRequest,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Generate one invoice or quotation from the student's attendance"""
    invoice = BillingService(db).generate(request)
    return InvoiceOut.model_validate(invoice)


@router.post("/bulk", response_model=BulkGenerateResponse, status_code=status.HTTP_201_CREATED)
async def generate_bulk(
    request: BulkGenerateRequest,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Generate invoices for several students.

    Stops at the first student that fails; invoices already generated
    for earlier students are kept.
    """
    def progress(current: int, total: int):
        logger.info(f"Bulk generation progress: {current}/{total}")

    invoices = BillingService(db).generate_bulk(request, on_progress=progress)
    return BulkGenerateResponse(
        generated=len(invoices),
        total=len(request.student_ids),
        invoice_ids=[i.id for i in invoices]
    )


@router.get("/", response_model=List[InvoiceOut])
async def get_invoices(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db),
    type: Optional[DocumentType] = Query(None, description="invoice or quotation"),
    status: Optional[InvoiceStatus] = Query(None),
    student_id: Optional[UUID] = Query(None),
):
    invoices = list_invoices(db, doc_type=type, status=status, student_id=student_id)
    return [InvoiceOut.model_validate(i) for i in invoices]


@router.get("/stats", response_model=InvoiceStats)
async def get_invoice_stats(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Counts and totals over invoices; quotations are excluded"""
    return InvoiceStats(**invoice_stats(list_invoices(db)))


@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(
    invoice_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return InvoiceOut.model_validate(BillingService(db).get(invoice_id))


@router.put("/{invoice_id}", response_model=InvoiceOut)
async def edit_invoice(
    invoice_id: UUID,
    patch: InvoiceEdit,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    invoice = BillingService(db).edit(invoice_id, patch)
    return InvoiceOut.model_validate(invoice)


@router.post("/{invoice_id}/toggle-status", response_model=InvoiceStatusOut)
async def toggle_invoice_status(
    invoice_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Flip Unpaid <-> Paid"""
    invoice = BillingService(db).toggle_status(invoice_id)
    return InvoiceStatusOut(id=invoice.id, status=invoice.status, paid_at=invoice.paid_at)


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    BillingService(db).delete(invoice_id)
    logger.info(f"Invoice {invoice_id} deleted by {ctx['email']}")
    return {"message": "Invoice deleted"}


@router.get("/{invoice_id}/message")
async def invoice_message(
    invoice_id: UUID,
    template: str = Query("invoice", description="invoice, reminder or receipt"),
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """WhatsApp message and deep link for sharing an invoice with the parent"""
    invoice = BillingService(db).get(invoice_id)
    student = db.get(Student, invoice.student_id)
    profile = load_business_profile(db)
    return compose(template, profile.business_name, invoice=invoice, student=student)
