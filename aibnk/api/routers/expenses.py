from __future__ import annotations

import logging
from collections import defaultdict
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking.ledger import InsufficientFundsError, post_transaction
from aibnk.api.database import get_db, utcnow
from aibnk.api.deps import get_org_id, get_user_id, resolve_operating_account
from aibnk.api.utils.uploads import public_url, save_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/expenses", tags=["expenses"])

# target -> statuses it may be reached from
EXPENSE_TRANSITIONS = {
    "approved": ("pending",),
    "rejected": ("pending",),
    "reimbursed": ("approved",),
}


def _get_expense(db: Session, expense_id: str, org_id: str) -> models.Expense:
    expense = db.get(models.Expense, expense_id)
    if expense is None or expense.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


def _post_expense_debit(db: Session, expense: models.Expense) -> None:
    account = resolve_operating_account(db, expense.organization_id)
    post_transaction(
        db,
        account,
        type="debit",
        amount=expense.amount,
        description=expense.description or "Expense",
        reference=f"EXP-{expense.id[:8].upper()}",
        counterparty_name=expense.vendor or "Expense",
        category=expense.category,
        metadata={"expense_id": expense.id},
    )


@router.get("", response_model=List[schemas.ExpenseRead])
def list_expenses(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return (
        db.query(models.Expense)
        .filter(models.Expense.organization_id == org_id)
        .order_by(models.Expense.expense_date.desc(), models.Expense.created_at.desc())
        .all()
    )


@router.get("/stats", response_model=schemas.ExpenseStats)
def expense_stats(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    expenses = db.query(models.Expense).filter(models.Expense.organization_id == org_id).all()
    today = utcnow().date()
    this_month = [
        e for e in expenses
        if e.expense_date.year == today.year and e.expense_date.month == today.month
    ]
    pending = [e for e in expenses if e.status == "pending"]

    by_category = defaultdict(float)
    for expense in expenses:
        by_category[expense.category or "Other"] += float(expense.amount)
    categories = [
        {"name": name, "value": round(value, 2)}
        for name, value in sorted(by_category.items(), key=lambda item: item[1], reverse=True)
    ]

    return {
        "this_month": round(sum(float(e.amount) for e in this_month), 2),
        "pending": round(sum(float(e.amount) for e in pending), 2),
        "pending_count": len(pending),
        "categories": categories,
    }


@router.post("", response_model=schemas.ExpenseRead, status_code=201)
def create_expense(
    payload: schemas.ExpenseCreate,
    org_id: str = Depends(get_org_id),
    user_id: str | None = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    expense = models.Expense(
        organization_id=org_id,
        user_id=user_id,
        description=payload.description,
        amount=round(payload.amount, 2),
        currency="AED",
        expense_date=payload.expense_date,
        category=payload.category,
        vendor=payload.vendor,
        needs_approval=payload.needs_approval,
        status="pending" if payload.needs_approval else "approved",
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.post("/{expense_id}/receipt", response_model=schemas.ExpenseRead)
def upload_receipt(
    expense_id: str,
    file: UploadFile = File(...),
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
):
    expense = _get_expense(db, expense_id, org_id)
    path, _ = save_upload(file, "receipts", org_id, stem=expense.id)
    expense.receipt_url = public_url(path)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.patch("/{expense_id}/status", response_model=schemas.ExpenseRead)
def update_expense_status(
    expense_id: str,
    payload: schemas.ExpenseStatusUpdate,
    org_id: str = Depends(get_org_id),
    user_id: str | None = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    expense = _get_expense(db, expense_id, org_id)
    allowed_from = EXPENSE_TRANSITIONS.get(payload.status, ())
    if expense.status not in allowed_from:
        raise HTTPException(
            status_code=409,
            detail=f"Expense is {expense.status} and cannot become {payload.status}",
        )

    if payload.status == "approved":
        try:
            _post_expense_debit(db, expense)
        except InsufficientFundsError as exc:
            db.rollback()
            logger.warning("Expense %s not approved: %s", expense_id, exc)
            raise HTTPException(status_code=409, detail="Insufficient funds") from exc
        expense.approved_at = utcnow()
        expense.approved_by = user_id

    expense.status = payload.status
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense
