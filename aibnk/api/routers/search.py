from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from aibnk.api import models, schemas
from aibnk.api.banking.formatting import format_money
from aibnk.api.database import get_db
from aibnk.api.deps import get_org_id


router = APIRouter(prefix="/v1/search", tags=["search"])

MIN_QUERY_LENGTH = 2
PER_KIND_LIMIT = 5
LIKE_ESCAPE = "\\"


def _contains(query: str) -> str:
    """ILIKE pattern matching `query` literally, wildcards included."""
    for char in (LIKE_ESCAPE, "%", "_"):
        query = query.replace(char, LIKE_ESCAPE + char)
    return f"%{query}%"


@router.get("", response_model=List[schemas.SearchResult])
def search(q: str = "", org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    query = q.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return []
    pattern = _contains(query)
    results: List[schemas.SearchResult] = []

    transactions = (
        db.query(models.Transaction)
        .join(models.Account, models.Account.id == models.Transaction.account_id)
        .filter(models.Account.organization_id == org_id)
        .filter(or_(
            models.Transaction.description.ilike(pattern, escape=LIKE_ESCAPE),
            models.Transaction.counterparty_name.ilike(pattern, escape=LIKE_ESCAPE),
        ))
        .order_by(models.Transaction.created_at.desc())
        .limit(PER_KIND_LIMIT)
        .all()
    )
    for tx in transactions:
        sign = "+" if tx.type == "credit" else "-"
        results.append(schemas.SearchResult(
            id=tx.id,
            title=tx.description or tx.counterparty_name or "Transaction",
            subtitle=f"{sign}{format_money(tx.currency, tx.amount)}",
            type="transaction",
            path="/accounts",
        ))

    invoices = (
        db.query(models.Invoice)
        .filter(models.Invoice.organization_id == org_id)
        .filter(or_(
            models.Invoice.invoice_number.ilike(pattern, escape=LIKE_ESCAPE),
            models.Invoice.client_name.ilike(pattern, escape=LIKE_ESCAPE),
        ))
        .order_by(models.Invoice.created_at.desc())
        .limit(PER_KIND_LIMIT)
        .all()
    )
    for invoice in invoices:
        results.append(schemas.SearchResult(
            id=invoice.id,
            title=invoice.invoice_number,
            subtitle=f"{invoice.client_name} - {format_money(invoice.currency, invoice.total)}",
            type="invoice",
            path="/invoices",
        ))

    payments = (
        db.query(models.Payment)
        .filter(models.Payment.organization_id == org_id)
        .filter(models.Payment.reference.ilike(pattern, escape=LIKE_ESCAPE))
        .order_by(models.Payment.created_at.desc())
        .limit(PER_KIND_LIMIT)
        .all()
    )
    for payment in payments:
        results.append(schemas.SearchResult(
            id=payment.id,
            title=payment.reference or "Payment",
            subtitle=f"{format_money(payment.currency, payment.amount)} - {payment.status}",
            type="payment",
            path="/payments",
        ))

    cards = (
        db.query(models.Card)
        .filter(models.Card.organization_id == org_id)
        .filter(models.Card.cardholder_name.ilike(pattern, escape=LIKE_ESCAPE))
        .order_by(models.Card.created_at.desc())
        .limit(PER_KIND_LIMIT)
        .all()
    )
    for card in cards:
        results.append(schemas.SearchResult(
            id=card.id,
            title=card.cardholder_name,
            subtitle=f"{card.card_type.capitalize()} card •••• {card.card_number_last4 or '****'}",
            type="card",
            path="/cards",
        ))

    return results
