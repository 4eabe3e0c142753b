"""Working-capital prequalification from the organization's own account history."""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy.orm import Session

from aibnk.api import models
from aibnk.api.database import utcnow

LOOKBACK_DAYS = 90
PAYMENT_HISTORY_DAYS = 180
ELIGIBILITY_THRESHOLD = 50
AMOUNT_STEP = 5_000
MIN_ELIGIBLE_AMOUNT = 10_000
MAX_ELIGIBLE_AMOUNT = 500_000
ASSESSMENT_VALID_DAYS = 30
TARGET_CASHFLOW_RATIO = 1.5


def _label(score: int) -> str:
    if score >= 90:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 50:
        return "fair"
    return "poor"


def _factor(name: str, score: float, description: str) -> Dict[str, object]:
    value = max(0, min(100, int(round(score))))
    return {"name": name, "score": value, "status": _label(value), "description": description}


def assess(db: Session, organization_id: str, *, now: datetime | None = None) -> Dict[str, object]:
    now = now or utcnow()
    since = now - timedelta(days=LOOKBACK_DAYS)

    accounts = db.query(models.Account).filter(models.Account.organization_id == organization_id).all()
    account_ids = [account.id for account in accounts]

    if accounts:
        opened = min(account.created_at for account in accounts)
        months_active = max(0, (now - opened).days // 30)
    else:
        months_active = 0

    recent = []
    if account_ids:
        recent = (
            db.query(models.Transaction)
            .filter(models.Transaction.account_id.in_(account_ids))
            .filter(models.Transaction.created_at >= since)
            .all()
        )
    credits = sum(float(tx.amount) for tx in recent if tx.type == "credit")
    debits = sum(float(tx.amount) for tx in recent if tx.type == "debit")
    monthly_count = len(recent) / (LOOKBACK_DAYS / 30)

    failed_payments = (
        db.query(models.Payment)
        .filter(models.Payment.organization_id == organization_id)
        .filter(models.Payment.status == "failed")
        .filter(models.Payment.created_at >= now - timedelta(days=PAYMENT_HISTORY_DAYS))
        .count()
    )

    if debits > 0:
        ratio = credits / debits
        cashflow_score = ratio / TARGET_CASHFLOW_RATIO * 100
    else:
        ratio = None
        cashflow_score = 100 if credits > 0 else 0

    factors: List[Dict[str, object]] = [
        _factor("Account Age", 25 + 10 * months_active, f"Active for {months_active} month(s)"),
        _factor("Transaction Volume", monthly_count * 6, f"{monthly_count:.0f} transactions per month"),
        _factor(
            "Payment History",
            100 - 20 * failed_payments,
            "No failed payments" if failed_payments == 0 else f"{failed_payments} failed payment(s)",
        ),
        _factor(
            "Cash Flow",
            cashflow_score,
            "No outgoing activity" if ratio is None else f"Inflow/outflow ratio {ratio:.2f}",
        ),
    ]
    overall = int(round(sum(f["score"] for f in factors) / len(factors)))

    if overall < ELIGIBILITY_THRESHOLD:
        status = "not_eligible"
        amount = 0.0
        reason = f"Overall score {overall} is below {ELIGIBILITY_THRESHOLD}"
    else:
        status = "pre_qualified"
        monthly_inflow = credits / (LOOKBACK_DAYS / 30)
        raw = monthly_inflow * 3 * overall / 100
        stepped = math.floor(raw / AMOUNT_STEP) * AMOUNT_STEP
        amount = float(min(MAX_ELIGIBLE_AMOUNT, max(MIN_ELIGIBLE_AMOUNT, stepped)))
        reason = "Based on your account performance and transaction history"

    return {
        "status": status,
        "overall_score": overall,
        "factors": factors,
        "max_eligible_amount": amount,
        "eligibility_reason": reason,
        "assessed_at": now,
        "expires_at": now + timedelta(days=ASSESSMENT_VALID_DAYS),
    }
