# tutorbill/api/routers/expenses.py - Business expenses
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Dict, Any, List
from uuid import UUID
import logging

from tutorbill.core.db import get_db
from tutorbill.api.deps.auth import require_admin
from tutorbill.models.expense import Expense
from tutorbill.schemas.expense import ExpenseCreate, ExpenseOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    expense = Expense(**expense_data.model_dump())
    db.add(expense)

    try:
        db.commit()
        db.refresh(expense)
        logger.info(f"Expense recorded: {expense.description} ({expense.amount})")
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating expense: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating expense"
        )

    return expense


@router.get("/", response_model=List[ExpenseOut])
async def get_expenses(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Newest first"""
    return db.execute(
        select(Expense).order_by(Expense.spent_on.desc(), Expense.created_at.desc())
    ).scalars().all()


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    expense = db.get(Expense, expense_id)
    if not expense:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found"
        )

    db.delete(expense)
    db.commit()
    return {"message": "Expense deleted"}
