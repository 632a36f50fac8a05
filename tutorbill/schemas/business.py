# tutorbill/schemas/business.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
import uuid


DEFAULT_PRICING = {"Beginner": 999, "Intermediate": 1499, "Advanced": 1499}


class BankAccount(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    bank_name: str = ""
    account_name: str = ""
    account_number: str = ""
    ifsc: str = ""
    account_type: str = ""
    upi_id: str = ""


class BusinessProfile(BaseModel):
    """The singleton settings document: business details, pricing table and bank accounts"""

    business_name: str = "Makerworks Lab"
    tagline: str = "Robotics & S.T.E.A.M Education"
    address: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
    gstin: str = ""
    pan: str = ""
    upi_id: str = ""
    invoice_template: str = "modern"
    pricing: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_PRICING))
    bank_accounts: List[BankAccount] = []
    default_bank_id: Optional[str] = None
    invoice_terms: List[str] = []

    @field_validator('pricing')
    @classmethod
    def validate_pricing(cls, v: Dict[str, int]) -> Dict[str, int]:
        for course, rate in v.items():
            if not course.strip():
                raise ValueError('Course name cannot be empty')
            if rate < 0:
                raise ValueError(f'Rate for {course} cannot be negative')
        return v


class CoursePriceIn(BaseModel):
    course: str = Field(..., min_length=1, max_length=64)
    rate: int = Field(..., ge=0)

    @field_validator('course')
    @classmethod
    def validate_course(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Course name cannot be empty or whitespace')
        return v.strip()


class BankAccountIn(BaseModel):
    bank_name: str = ""
    account_name: str
    account_number: str
    ifsc: str = ""
    account_type: str = ""
    upi_id: str = ""
