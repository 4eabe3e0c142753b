"""Posting and reading account activity."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from aibnk.api import models
from aibnk.api.database import utcnow

logger = logging.getLogger(__name__)

SUMMARY_WINDOW_DAYS = 30


class InsufficientFundsError(RuntimeError):
    """Raised when a debit exceeds the account's available balance."""


def post_transaction(
    db: Session,
    account: models.Account,
    *,
    type: str,
    amount: float,
    description: str | None = None,
    reference: str | None = None,
    counterparty_name: str | None = None,
    category: str | None = None,
    metadata: Dict[str, Any] | None = None,
) -> models.Transaction:
    """Insert a completed transaction and move the account balances.

    Nothing is committed here; callers own the unit of work.
    """
    if type not in ("credit", "debit"):
        raise ValueError(f"Unknown transaction type '{type}'")
    amount = round(float(amount), 2)
    if amount <= 0:
        raise ValueError("Transaction amount must be positive")

    if type == "debit":
        if amount > (account.available_balance or 0):
            raise InsufficientFundsError(
                f"Available balance {account.available_balance:.2f} is below {amount:.2f}"
            )
        account.balance = round((account.balance or 0) - amount, 2)
        account.available_balance = round((account.available_balance or 0) - amount, 2)
    else:
        account.balance = round((account.balance or 0) + amount, 2)
        account.available_balance = round((account.available_balance or 0) + amount, 2)

    tx = models.Transaction(
        account_id=account.id,
        type=type,
        amount=amount,
        currency=account.currency,
        status="completed",
        description=description,
        reference=reference,
        counterparty_name=counterparty_name,
        category=category,
        metadata_=metadata,
    )
    db.add(tx)
    db.add(account)
    logger.info("Posted %s %.2f %s on account %s", type, amount, account.currency, account.id)
    return tx


def _account_entry(tx: models.Transaction) -> Dict[str, Any]:
    return {
        "id": tx.id,
        "type": tx.type,
        "amount": float(tx.amount),
        "currency": tx.currency,
        "description": tx.description or tx.counterparty_name or "Transaction",
        "counterparty_name": tx.counterparty_name,
        "reference": tx.reference,
        "category": tx.category,
        "status": tx.status,
        "created_at": tx.created_at,
        "source": "account",
    }


def _card_entry(tx: models.CardTransaction, last4: str | None) -> Dict[str, Any]:
    return {
        "id": tx.id,
        "type": "debit",
        "amount": float(tx.amount),
        "currency": tx.currency,
        "description": tx.merchant_name or "Card Transaction",
        "counterparty_name": tx.merchant_name,
        "reference": f"Card •••• {last4 or '****'}",
        "category": tx.merchant_category,
        "status": tx.status,
        "created_at": tx.created_at,
        "source": "card",
    }


def _matches(entry: Dict[str, Any], query: str) -> bool:
    needle = query.lower()
    for key in ("description", "reference", "counterparty_name", "category"):
        value = entry.get(key)
        if value and needle in value.lower():
            return True
    return False


def unified_feed(
    db: Session,
    organization_id: str,
    account_id: str,
    *,
    type_filter: str = "all",
    query: str | None = None,
    limit: int | None = None,
) -> List[Dict[str, Any]]:
    """Account transactions merged with the organization's card spend, newest first."""
    account_txs = (
        db.query(models.Transaction)
        .filter(models.Transaction.account_id == account_id)
        .all()
    )
    card_rows = (
        db.query(models.CardTransaction, models.Card.card_number_last4)
        .join(models.Card, models.Card.id == models.CardTransaction.card_id)
        .filter(models.Card.organization_id == organization_id)
        .all()
    )

    entries = [_account_entry(tx) for tx in account_txs]
    entries.extend(_card_entry(tx, last4) for tx, last4 in card_rows)

    if type_filter != "all":
        entries = [entry for entry in entries if entry["type"] == type_filter]
    if query:
        entries = [entry for entry in entries if _matches(entry, query)]

    entries.sort(key=lambda entry: entry["created_at"], reverse=True)
    if limit is not None:
        entries = entries[:limit]
    return entries


def summarize_recent(db: Session, account_id: str, *, now: datetime | None = None) -> Dict[str, Any]:
    since = (now or utcnow()) - timedelta(days=SUMMARY_WINDOW_DAYS)
    rows = (
        db.query(models.Transaction.type, models.Transaction.amount)
        .filter(models.Transaction.account_id == account_id)
        .filter(models.Transaction.created_at >= since)
        .all()
    )
    incoming = [float(amount) for kind, amount in rows if kind == "credit"]
    outgoing = [float(amount) for kind, amount in rows if kind == "debit"]
    return {
        "incoming_total": round(sum(incoming), 2),
        "incoming_count": len(incoming),
        "outgoing_total": round(sum(outgoing), 2),
        "outgoing_count": len(outgoing),
    }
