from __future__ import annotations


def format_amount(value) -> str:
    """Group thousands, keep up to two decimals: 15000 -> '15,000', 99.5 -> '99.5'."""
    number = float(value or 0)
    text = f"{number:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_money(currency: str | None, value) -> str:
    return f"{currency or 'AED'} {format_amount(value)}"
