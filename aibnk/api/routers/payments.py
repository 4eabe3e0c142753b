from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking.formatting import format_money
from aibnk.api.banking.ledger import InsufficientFundsError, post_transaction
from aibnk.api.banking.notifications import notify
from aibnk.api.database import get_db, utcnow
from aibnk.api.deps import get_operating_account, get_org_id, get_user_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/payments", tags=["payments"])

CANCELLABLE_STATUSES = ("draft", "pending_approval", "scheduled")


def _payment_to_schema(payment: models.Payment) -> schemas.PaymentRead:
    data = schemas.PaymentRead.model_validate(payment)
    data.beneficiary_name = payment.beneficiary.name if payment.beneficiary else None
    return data


def _get_payment(db: Session, payment_id: str, org_id: str) -> models.Payment:
    payment = db.get(models.Payment, payment_id)
    if payment is None or payment.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def _settle(db: Session, payment: models.Payment, account: models.Account) -> None:
    beneficiary_name = payment.beneficiary.name if payment.beneficiary else "Beneficiary"
    post_transaction(
        db,
        account,
        type="debit",
        amount=payment.amount,
        description=f"Payment to {beneficiary_name}",
        reference=payment.reference or f"PAY-{payment.id[:8]}",
        counterparty_name=beneficiary_name,
        category="payment",
        metadata={"payment_id": payment.id},
    )
    payment.status = "completed"
    payment.processed_at = utcnow()
    notify(
        db,
        payment.organization_id,
        "payment",
        "Payment Completed",
        f"{format_money(payment.currency, payment.amount)} sent to {beneficiary_name}",
    )


@router.get("", response_model=List[schemas.PaymentRead])
def list_payments(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    records = (
        db.query(models.Payment)
        .filter(models.Payment.organization_id == org_id)
        .order_by(models.Payment.created_at.desc())
        .all()
    )
    return [_payment_to_schema(item) for item in records]


@router.post("", response_model=schemas.PaymentRead, status_code=201)
def create_payment(
    payload: schemas.PaymentCreate,
    org_id: str = Depends(get_org_id),
    user_id: str | None = Depends(get_user_id),
    account: models.Account = Depends(get_operating_account),
    db: Session = Depends(get_db),
):
    beneficiary = db.get(models.Beneficiary, payload.beneficiary_id)
    if beneficiary is None or beneficiary.organization_id != org_id or not beneficiary.is_active:
        raise HTTPException(status_code=404, detail="Beneficiary not found")

    payment = models.Payment(
        organization_id=org_id,
        account_id=account.id,
        beneficiary_id=beneficiary.id,
        amount=round(payload.amount, 2),
        currency=payload.currency,
        reference=payload.reference,
        purpose=payload.purpose,
        scheduled_date=payload.scheduled_date,
        status="pending_approval",
        created_by=user_id,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return _payment_to_schema(payment)


@router.post("/{payment_id}/approve", response_model=schemas.PaymentRead)
def approve_payment(
    payment_id: str,
    org_id: str = Depends(get_org_id),
    user_id: str | None = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    payment = _get_payment(db, payment_id, org_id)
    if payment.status != "pending_approval":
        raise HTTPException(status_code=409, detail=f"Payment is {payment.status}, not pending approval")

    payment.approved_by = user_id
    if payment.scheduled_date and payment.scheduled_date > utcnow().date():
        payment.status = "scheduled"
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return _payment_to_schema(payment)

    account = db.get(models.Account, payment.account_id) if payment.account_id else None
    if account is None:
        raise HTTPException(status_code=404, detail="Debit account not found")
    try:
        _settle(db, payment, account)
    except InsufficientFundsError as exc:
        db.rollback()
        payment = _get_payment(db, payment_id, org_id)
        payment.status = "failed"
        payment.approved_by = user_id
        db.add(payment)
        db.commit()
        logger.warning("Payment %s failed: %s", payment_id, exc)
        raise HTTPException(status_code=409, detail="Insufficient funds") from exc
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return _payment_to_schema(payment)


@router.post("/{payment_id}/cancel", response_model=schemas.PaymentRead)
def cancel_payment(payment_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    payment = _get_payment(db, payment_id, org_id)
    if payment.status not in CANCELLABLE_STATUSES:
        raise HTTPException(status_code=409, detail=f"Payment is {payment.status} and cannot be cancelled")
    payment.status = "cancelled"
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return _payment_to_schema(payment)
