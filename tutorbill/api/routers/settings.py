# tutorbill/api/routers/settings.py - Business profile, course pricing and bank accounts
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any
import logging

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.schemas.business import BusinessProfile, BankAccount, BankAccountIn, CoursePriceIn
from tutorbill.services import business_settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=BusinessProfile)
async def get_business_profile(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return business_settings.load_business_profile(db)


@router.put("/", response_model=BusinessProfile)
async def put_business_profile(
    profile: BusinessProfile,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return business_settings.save_business_profile(db, profile)


@router.put("/pricing", response_model=BusinessProfile)
async def set_course_price(
    price: CoursePriceIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Add a course or change its per-class rate; applies to invoices generated from now on"""
    profile = business_settings.set_course_price(db, price.course, price.rate)
    logger.info(f"Price for {price.course} set to {price.rate}")
    return profile


@router.delete("/pricing/{course}", response_model=BusinessProfile)
async def remove_course(
    course: str,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return business_settings.remove_course(db, course)


@router.post("/bank-accounts", response_model=BusinessProfile, status_code=status.HTTP_201_CREATED)
async def add_bank_account(
    account: BankAccountIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return business_settings.add_bank_account(db, BankAccount(**account.model_dump()))


@router.put("/bank-accounts/{bank_id}/default", response_model=BusinessProfile)
async def set_default_bank_account(
    bank_id: str,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return business_settings.set_default_bank(db, bank_id)


@router.delete("/bank-accounts/{bank_id}", response_model=BusinessProfile)
async def remove_bank_account(
    bank_id: str,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return business_settings.remove_bank_account(db, bank_id)
