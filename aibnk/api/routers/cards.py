from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking import card_controls
from aibnk.api.banking.formatting import format_money
from aibnk.api.banking.notifications import notify
from aibnk.api.database import get_db, utcnow
from aibnk.api.deps import get_operating_account, get_org_id, get_user_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/cards", tags=["cards"])


def _get_card(db: Session, card_id: str, org_id: str) -> models.Card:
    card = db.get(models.Card, card_id)
    if card is None or card.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


def _set_status(db: Session, card: models.Card, expected: str, target: str) -> models.Card:
    if card.status != expected:
        raise HTTPException(status_code=409, detail=f"Card is {card.status}, expected {expected}")
    card.status = target
    db.add(card)
    db.commit()
    db.refresh(card)
    logger.info("Card %s %s -> %s", card.id, expected, target)
    return card


@router.get("", response_model=List[schemas.CardRead])
def list_cards(org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return (
        db.query(models.Card)
        .filter(models.Card.organization_id == org_id)
        .order_by(models.Card.created_at.desc())
        .all()
    )


@router.post("", response_model=schemas.CardRead, status_code=201)
def issue_card(
    payload: schemas.CardCreate,
    org_id: str = Depends(get_org_id),
    user_id: str | None = Depends(get_user_id),
    account: models.Account = Depends(get_operating_account),
    db: Session = Depends(get_db),
):
    card = models.Card(
        organization_id=org_id,
        account_id=account.id,
        card_type=payload.card_type,
        cardholder_name=payload.cardholder_name,
        card_number_last4=card_controls.generate_last4(),
        status=card_controls.initial_status(payload.card_type),
        spending_limit=payload.monthly_limit,
        monthly_limit=payload.monthly_limit,
        expires_at=card_controls.expiry_from(utcnow().date()),
        assigned_to=user_id,
    )
    card.controls = models.CardControls(**card_controls.default_controls(payload.monthly_limit))
    db.add(card)
    notify(
        db,
        org_id,
        "card",
        "Card Issued",
        f"{payload.card_type.capitalize()} card for {payload.cardholder_name} is {card.status}",
    )
    db.commit()
    db.refresh(card)
    return card


@router.patch("/{card_id}/controls", response_model=schemas.CardRead)
def update_controls(
    card_id: str,
    payload: schemas.CardControlsUpdate,
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
):
    card = _get_card(db, card_id, org_id)
    controls = card.controls
    if controls is None:
        controls = models.CardControls(**card_controls.default_controls(card.monthly_limit or 0))
        card.controls = controls
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(controls, field, value)
    if "monthly_limit" in payload.model_fields_set and payload.monthly_limit is not None:
        card.monthly_limit = payload.monthly_limit
    db.add(card)
    db.commit()
    db.refresh(card)
    return card


@router.post("/{card_id}/freeze", response_model=schemas.CardRead)
def freeze_card(card_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return _set_status(db, _get_card(db, card_id, org_id), "active", "frozen")


@router.post("/{card_id}/unfreeze", response_model=schemas.CardRead)
def unfreeze_card(card_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    return _set_status(db, _get_card(db, card_id, org_id), "frozen", "active")


@router.get("/{card_id}/transactions", response_model=List[schemas.CardTransactionRead])
def list_card_transactions(card_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    _get_card(db, card_id, org_id)
    return (
        db.query(models.CardTransaction)
        .filter(models.CardTransaction.card_id == card_id)
        .order_by(models.CardTransaction.created_at.desc())
        .all()
    )


@router.get("/{card_id}/stats", response_model=schemas.CardStats)
def card_stats(card_id: str, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    card = _get_card(db, card_id, org_id)
    spent = [float(tx.amount) for tx in card.transactions if tx.status == "completed"]
    total = round(sum(spent), 2)
    return {
        "total_spent": total,
        "transaction_count": len(spent),
        "avg_transaction": int(round(total / len(spent))) if spent else 0,
    }


@router.post("/{card_id}/transactions", response_model=schemas.CardTransactionRead, status_code=201)
def authorize_purchase(
    card_id: str,
    payload: schemas.CardPurchase,
    org_id: str = Depends(get_org_id),
    db: Session = Depends(get_db),
):
    card = _get_card(db, card_id, org_id)
    decision = card_controls.authorize(
        card,
        payload.amount,
        category=payload.merchant_category,
        channel=payload.channel,
        international=payload.international,
        now=utcnow(),
    )
    tx = models.CardTransaction(
        card_id=card.id,
        amount=round(payload.amount, 2),
        currency=payload.currency,
        merchant_name=payload.merchant_name,
        merchant_category=payload.merchant_category,
        status="completed" if decision.approved else "failed",
        declined_reason=decision.reason,
    )
    db.add(tx)
    if not decision.approved:
        logger.info("Card %s purchase declined: %s", card.id, decision.reason)
        notify(
            db,
            org_id,
            "alert",
            "Card Transaction Declined",
            f"{format_money(payload.currency, payload.amount)} at {payload.merchant_name or 'merchant'}: {decision.reason}",
        )
    db.commit()
    db.refresh(tx)
    return tx
