# tutorbill/services/business_settings.py - Singleton business settings document (pricing, bank accounts)
import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from tutorbill.core.errors import NotFoundError, ValidationError, StoreError
from tutorbill.models.setting import AppSetting
from tutorbill.schemas.business import BusinessProfile, BankAccount

logger = logging.getLogger(__name__)

BUSINESS_KEY = "business"


def load_business_profile(db: Session) -> BusinessProfile:
    """Read the settings document afresh; defaults apply when it was never saved"""
    row = db.get(AppSetting, BUSINESS_KEY)
    if row is None:
        return BusinessProfile()
    return BusinessProfile.model_validate(row.value)


def save_business_profile(db: Session, profile: BusinessProfile) -> BusinessProfile:
    """Rewrite the whole settings document"""
    if profile.bank_accounts and not any(b.id == profile.default_bank_id for b in profile.bank_accounts):
        profile.default_bank_id = profile.bank_accounts[0].id
    if not profile.bank_accounts:
        profile.default_bank_id = None

    try:
        row = db.get(AppSetting, BUSINESS_KEY)
        if row is None:
            row = AppSetting(key=BUSINESS_KEY, value=profile.model_dump())
            db.add(row)
        else:
            row.value = profile.model_dump()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save business settings: {e}")
        raise StoreError("Could not save business settings") from e

    logger.info("Business settings saved")
    return profile


def rate_for_course(profile: BusinessProfile, course: Optional[str]) -> int:
    """Price per class; unknown courses bill at zero"""
    return profile.pricing.get(course or "", 0)


def resolve_bank_account(profile: BusinessProfile, bank_id: Optional[str]) -> Optional[BankAccount]:
    """
    Pick the bank account to freeze into an invoice.

    Without an id the first configured account is used, and with no accounts
    at all the invoice carries no bank details.

    An explicit id must exist. An unknown id raises ValidationError instead
    of storing an invoice with an empty bank snapshot; callers that relied on
    the empty snapshot must drop the id.
    """
    if bank_id:
        for account in profile.bank_accounts:
            if account.id == bank_id:
                return account.model_copy(deep=True)
        raise ValidationError(f"Bank account {bank_id} is not configured")
    if profile.bank_accounts:
        return profile.bank_accounts[0].model_copy(deep=True)
    return None


def set_course_price(db: Session, course: str, rate: int) -> BusinessProfile:
    profile = load_business_profile(db)
    profile.pricing = {**profile.pricing, course: rate}
    return save_business_profile(db, profile)


def remove_course(db: Session, course: str) -> BusinessProfile:
    profile = load_business_profile(db)
    if course not in profile.pricing:
        raise NotFoundError(f"Course {course} not found")
    profile.pricing = {k: v for k, v in profile.pricing.items() if k != course}
    return save_business_profile(db, profile)


def add_bank_account(db: Session, account: BankAccount) -> BusinessProfile:
    profile = load_business_profile(db)
    profile.bank_accounts = [*profile.bank_accounts, account]
    # First account becomes the default
    profile.default_bank_id = profile.default_bank_id or account.id
    return save_business_profile(db, profile)


def set_default_bank(db: Session, bank_id: str) -> BusinessProfile:
    profile = load_business_profile(db)
    if not any(b.id == bank_id for b in profile.bank_accounts):
        raise NotFoundError(f"Bank account {bank_id} not found")
    profile.default_bank_id = bank_id
    return save_business_profile(db, profile)


def remove_bank_account(db: Session, bank_id: str) -> BusinessProfile:
    profile = load_business_profile(db)
    remaining = [b for b in profile.bank_accounts if b.id != bank_id]
    if len(remaining) == len(profile.bank_accounts):
        raise NotFoundError(f"Bank account {bank_id} not found")
    profile.bank_accounts = remaining
    return save_business_profile(db, profile)
