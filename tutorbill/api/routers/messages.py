# tutorbill/api/routers/messages.py - WhatsApp message templates
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from uuid import UUID

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.models.student import Student
from tutorbill.services.billing import BillingService
from tutorbill.services.business_settings import load_business_profile
from tutorbill.services.messaging import MessageTemplates, compose

router = APIRouter()


class ComposeIn(BaseModel):
    template_id: str
    student_id: Optional[UUID] = None
    invoice_id: Optional[UUID] = None
    extra: Dict[str, str] = {}


@router.get("/templates")
async def list_templates(ctx: Dict[str, Any] = Depends(require_admin)):
    return MessageTemplates.names()


@router.post("/compose")
async def compose_message(
    payload: ComposeIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Render a template for a student and/or invoice with a wa.me link"""
    invoice = BillingService(db).get(payload.invoice_id) if payload.invoice_id else None

    student_id = payload.student_id or (invoice.student_id if invoice else None)
    student = db.get(Student, student_id) if student_id else None
    if payload.student_id and student is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found"
        )

    profile = load_business_profile(db)
    return compose(payload.template_id, profile.business_name, invoice=invoice, student=student, extra=payload.extra)
