from __future__ import annotations

import secrets
import string
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking.formatting import format_money
from aibnk.api.banking.ledger import post_transaction
from aibnk.api.banking.notifications import notify
from aibnk.api.database import get_db, utcnow
from aibnk.api.deps import get_org_id, resolve_operating_account


router = APIRouter(prefix="/v1/payment-links", tags=["payments"])

LINK_CODE_ALPHABET = string.ascii_lowercase + string.digits
LINK_CODE_LENGTH = 8
LINK_VALID_DAYS = 30


def generate_link_code() -> str:
    return "".join(secrets.choice(LINK_CODE_ALPHABET) for _ in range(LINK_CODE_LENGTH))


@router.get("", response_model=List[schemas.PaymentLinkRead])
def list_links(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return (
        db.query(models.PaymentLink)
        .filter(models.PaymentLink.organization_id == org_id)
        .order_by(models.PaymentLink.created_at.desc())
        .all()
    )


@router.post("", response_model=schemas.PaymentLinkRead, status_code=201)
def create_link(payload: schemas.PaymentLinkCreate, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    code = generate_link_code()
    while db.query(models.PaymentLink).filter(models.PaymentLink.link_code == code).first() is not None:
        code = generate_link_code()
    link = models.PaymentLink(
        organization_id=org_id,
        link_code=code,
        amount=round(payload.amount, 2),
        currency="AED",
        description=payload.description,
        expires_at=utcnow() + timedelta(days=LINK_VALID_DAYS),
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


@router.post("/{link_code}/pay", response_model=schemas.PaymentLinkRead)
def pay_link(link_code: str, db: Session = Depends(get_db)):
    """Collect a payment link; the payer is anonymous so no org header applies."""
    link = db.query(models.PaymentLink).filter(models.PaymentLink.link_code == link_code).first()
    if link is None:
        raise HTTPException(status_code=404, detail="Payment link not found")
    if link.is_paid:
        raise HTTPException(status_code=409, detail="Payment link already paid")
    if link.expires_at is not None and link.expires_at < utcnow():
        raise HTTPException(status_code=410, detail="Payment link expired")

    account = resolve_operating_account(db, link.organization_id)
    post_transaction(
        db,
        account,
        type="credit",
        amount=link.amount,
        description=link.description or "Payment link",
        reference=f"LINK-{link.link_code}",
        counterparty_name="Payment link customer",
        category="payment_link",
        metadata={"payment_link_id": link.id},
    )
    link.is_paid = True
    link.paid_at = utcnow()
    db.add(link)
    notify(
        db,
        link.organization_id,
        "success",
        "Payment Received",
        f"{format_money(link.currency, link.amount)} received via payment link",
    )
    db.commit()
    db.refresh(link)
    return link
