"""Card issuance defaults and purchase authorization against card controls."""
from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from aibnk.api import models

DEFAULT_ALLOWED_CATEGORIES = ["shopping", "travel", "dining", "transport"]
CARD_VALIDITY_YEARS = 3


def generate_last4(rng: random.Random | None = None) -> str:
    rng = rng or random
    return str(rng.randint(1000, 9999))


def expiry_from(today: date) -> date:
    try:
        return today.replace(year=today.year + CARD_VALIDITY_YEARS)
    except ValueError:
        # 29 February
        return today.replace(year=today.year + CARD_VALIDITY_YEARS, day=28)


def initial_status(card_type: str) -> str:
    return "active" if card_type == "virtual" else "requested"


def default_controls(monthly_limit: float) -> dict:
    return {
        "daily_limit": round(monthly_limit / 5, 2),
        "monthly_limit": monthly_limit,
        "per_transaction_limit": round(monthly_limit / 10, 2),
        "online_enabled": True,
        "contactless_enabled": True,
        "atm_enabled": True,
        "international_enabled": False,
        "allowed_categories": list(DEFAULT_ALLOWED_CATEGORIES),
        "blocked_categories": [],
    }


@dataclass
class Authorization:
    approved: bool
    reason: Optional[str] = None


def _spent_since(transactions: Iterable[models.CardTransaction], since: datetime) -> float:
    return sum(
        float(tx.amount)
        for tx in transactions
        if tx.status == "completed" and tx.created_at >= since
    )


def authorize(
    card: models.Card,
    amount: float,
    *,
    category: str | None,
    channel: str,
    international: bool,
    now: datetime,
) -> Authorization:
    """Decide a purchase; the first failing rule names the decline reason."""
    if card.status != "active":
        return Authorization(False, f"Card is {card.status}")

    controls = card.controls
    if controls is None:
        return Authorization(True)

    if controls.per_transaction_limit is not None and amount > controls.per_transaction_limit:
        return Authorization(False, "Exceeds per-transaction limit")

    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = day_start.replace(day=1)
    history = list(card.transactions)
    if controls.daily_limit is not None and _spent_since(history, day_start) + amount > controls.daily_limit:
        return Authorization(False, "Exceeds daily limit")
    if controls.monthly_limit is not None and _spent_since(history, month_start) + amount > controls.monthly_limit:
        return Authorization(False, "Exceeds monthly limit")

    normalized = (category or "").strip().lower()
    blocked = {c.lower() for c in (controls.blocked_categories or [])}
    allowed = {c.lower() for c in (controls.allowed_categories or [])}
    if normalized and normalized in blocked:
        return Authorization(False, f"Category '{normalized}' is blocked")
    if allowed and normalized not in allowed:
        return Authorization(False, f"Category '{normalized or 'unknown'}' is not allowed")

    if channel == "online" and not controls.online_enabled:
        return Authorization(False, "Online payments disabled")
    if channel == "atm" and not controls.atm_enabled:
        return Authorization(False, "ATM withdrawals disabled")
    if channel == "contactless" and not controls.contactless_enabled:
        return Authorization(False, "Contactless payments disabled")
    if international and not controls.international_enabled:
        return Authorization(False, "International transactions disabled")

    return Authorization(True)
