# tutorbill/api/routers/public.py - Shareable invoice link, no authentication
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID

from tutorbill.core.db import get_db
from tutorbill.schemas.invoice import PublicInvoiceOut
from tutorbill.services.billing import BillingService
from tutorbill.services.business_settings import load_business_profile
from tutorbill.services.public_invoice import build_public_view

router = APIRouter()


@router.get("/invoice/{invoice_id}", response_model=PublicInvoiceOut)
async def public_invoice(invoice_id: UUID, db: Session = Depends(get_db)):
    """Invoice with business details, payment QR payload and amount in words"""
    invoice = BillingService(db).get(invoice_id)
    return build_public_view(invoice, load_business_profile(db))
