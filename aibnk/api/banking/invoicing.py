from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Sequence

from sqlalchemy.orm import Session

from aibnk.api import models
from aibnk.api.database import utcnow

INVOICE_NUMBER_RE = re.compile(r"INV-(\d{4})-(\d+)")
OUTSTANDING_STATUSES = ("sent", "viewed", "overdue")
TERMINAL_STATUSES = ("paid", "cancelled")
PAID_WINDOW_DAYS = 30


def next_invoice_number(existing: Iterable[str], year: int) -> str:
    sequence = 0
    for number in existing:
        match = INVOICE_NUMBER_RE.match(number or "")
        if match and int(match.group(1)) == year:
            sequence = max(sequence, int(match.group(2)))
    return f"INV-{year}-{sequence + 1:03d}"


def compute_totals(line_items: Sequence[dict], tax_rate: float) -> Dict[str, object]:
    """Line amounts, subtotal, tax and total, each rounded to cents."""
    items: List[dict] = []
    for item in line_items:
        amount = round(float(item["quantity"]) * float(item["unit_price"]), 2)
        items.append({**item, "amount": amount})
    subtotal = round(sum(item["amount"] for item in items), 2)
    tax_amount = round(subtotal * (float(tax_rate or 0) / 100), 2)
    return {
        "line_items": items,
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total": round(subtotal + tax_amount, 2),
    }


def refresh_overdue(db: Session, organization_id: str, *, today: date | None = None) -> int:
    """Flip sent/viewed invoices past their due date to overdue."""
    today = today or utcnow().date()
    stale = (
        db.query(models.Invoice)
        .filter(models.Invoice.organization_id == organization_id)
        .filter(models.Invoice.status.in_(("sent", "viewed")))
        .filter(models.Invoice.due_date.is_not(None))
        .filter(models.Invoice.due_date < today)
        .all()
    )
    for invoice in stale:
        invoice.status = "overdue"
        db.add(invoice)
    return len(stale)


def invoice_stats(invoices: Iterable[models.Invoice], *, now: datetime | None = None) -> Dict[str, float]:
    cutoff = (now or utcnow()) - timedelta(days=PAID_WINDOW_DAYS)
    outstanding = 0.0
    paid_recent = 0.0
    overdue = 0.0
    for invoice in invoices:
        total = float(invoice.total or 0)
        if invoice.status in OUTSTANDING_STATUSES:
            outstanding += total
        if invoice.status == "overdue":
            overdue += total
        if invoice.status == "paid":
            paid_on = invoice.paid_at or invoice.updated_at
            if paid_on and paid_on >= cutoff:
                paid_recent += total
    return {
        "total_outstanding": round(outstanding, 2),
        "paid_last_30_days": round(paid_recent, 2),
        "overdue": round(overdue, 2),
    }
