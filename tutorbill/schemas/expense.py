# tutorbill/schemas/expense.py
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID


class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    spent_on: date = Field(default_factory=date.today)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Description cannot be empty or whitespace')
        return v.strip()


class ExpenseOut(ExpenseCreate):
    id: UUID
    created_at: datetime

    class Config:
        from_attributes = True
