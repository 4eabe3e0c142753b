"""Plain-text financial snapshot handed to the assistant as grounding."""
from __future__ import annotations

import logging
from collections import OrderedDict, defaultdict
from typing import Dict, List

from sqlalchemy.orm import Session

from aibnk.api import models
from aibnk.api.banking.formatting import format_amount

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No financial data available for this user."

SYSTEM_PROMPT_TEMPLATE = """You are AIBNK's AI banking assistant, a helpful and knowledgeable financial companion for SME business owners.

Your capabilities include:
- Analyzing cashflow and financial patterns
- Helping create invoices and payments
- Explaining account balances and transactions
- Providing spending insights and recommendations
- Answering questions about banking operations

Guidelines:
- Be concise and professional, but friendly
- Use bullet points and formatting for clarity
- When discussing financial data, reference the ACTUAL data provided below
- Always clarify if you need more information
- Remind users that any financial actions require their confirmation
- Keep responses focused and actionable
- When you cite numbers, mention they are from "your account data"

IMPORTANT - Suggestions for invoices and payments:
- When SUGGESTING or RECOMMENDING invoice or payment actions proactively, ONLY suggest existing counterparties from the user's data (see "Available Beneficiaries" for payments, "Existing Invoice Clients" for invoices)
- However, if the user EXPLICITLY ASKS to create an invoice or payment with specific details (including new counterparties not in their data), proceed with their request - the user knows what they want
- For suggestions, phrase them like: "Would you like me to prepare an invoice for [existing client name]?" or "I can help you make a payment to [existing beneficiary name]"

{data_block}"""

DATA_BLOCK_TEMPLATE = """
--- USER'S CURRENT FINANCIAL DATA ---
{context}
--- END FINANCIAL DATA ---

Use this data to provide accurate, personalized responses. Reference specific numbers, transactions, and invoices when relevant. When suggesting actions, prefer existing counterparties from the data above."""


def _date(value) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def _sorted_totals(totals: Dict[str, float]) -> List[tuple]:
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def _accounts_section(db: Session, organization_id: str, lines: List[str]) -> List[str]:
    accounts = (
        db.query(models.Account)
        .filter(models.Account.organization_id == organization_id)
        .order_by(models.Account.is_primary.desc(), models.Account.created_at)
        .limit(5)
        .all()
    )
    if accounts:
        lines.append("## Account Summary")
        for acc in accounts:
            lines.append(
                f"- {acc.account_name} ({acc.currency}): Balance {acc.currency} {format_amount(acc.balance)}, "
                f"Available: {acc.currency} {format_amount(acc.available_balance)}"
            )
    return [acc.id for acc in accounts]


def _transactions_section(db: Session, account_ids: List[str], lines: List[str]) -> None:
    if not account_ids:
        return
    transactions = (
        db.query(models.Transaction)
        .filter(models.Transaction.account_id.in_(account_ids))
        .order_by(models.Transaction.created_at.desc())
        .limit(10)
        .all()
    )
    if not transactions:
        return
    lines.append("\n## Recent Transactions (Last 10)")
    credits = 0.0
    debits = 0.0
    for tx in transactions:
        sign = "+" if tx.type == "credit" else "-"
        if tx.type == "credit":
            credits += float(tx.amount)
        else:
            debits += float(tx.amount)
        lines.append(
            f"- {sign}{tx.currency} {format_amount(tx.amount)} | "
            f"{tx.counterparty_name or tx.description or 'Transaction'} | {tx.status} | {_date(tx.created_at)}"
        )
    currency = transactions[0].currency or "AED"
    lines.append(
        f"\nRecent activity: +{currency} {format_amount(credits)} credits, -{currency} {format_amount(debits)} debits"
    )


def _invoices_section(invoices: List[models.Invoice], lines: List[str]) -> None:
    if not invoices:
        return
    currency = invoices[0].currency or "AED"
    unpaid = [inv for inv in invoices if inv.status not in ("paid", "cancelled")]
    paid = [inv for inv in invoices if inv.status == "paid"]
    lines.append("\n## Invoices Summary")
    lines.append(f"- Unpaid invoices: {len(unpaid)} totaling {currency} {format_amount(sum(i.total for i in unpaid))}")
    lines.append(f"- Paid invoices: {len(paid)} totaling {currency} {format_amount(sum(i.total for i in paid))}")
    if unpaid:
        lines.append("\nPending invoices:")
        for inv in unpaid[:5]:
            lines.append(
                f"- {inv.invoice_number}: {inv.client_name} - {inv.currency} {format_amount(inv.total)} ({inv.status})"
            )


def _expenses_section(db: Session, organization_id: str, lines: List[str]) -> None:
    expenses = (
        db.query(models.Expense)
        .filter(models.Expense.organization_id == organization_id)
        .order_by(models.Expense.created_at.desc())
        .limit(15)
        .all()
    )
    if not expenses:
        lines.append("\n## Expenses")
        lines.append("No expenses recorded yet.")
        return

    currency = expenses[0].currency or "AED"
    pending = [e for e in expenses if e.status == "pending"]
    approved = [e for e in expenses if e.status == "approved"]
    rejected = [e for e in expenses if e.status == "rejected"]
    lines.append("\n## Expenses Summary")
    lines.append(f"- Total expenses: {len(expenses)} totaling {currency} {format_amount(sum(e.amount for e in expenses))}")
    lines.append(f"- Pending approval: {len(pending)} expenses ({currency} {format_amount(sum(e.amount for e in pending))})")
    lines.append(f"- Approved: {len(approved)} expenses ({currency} {format_amount(sum(e.amount for e in approved))})")
    lines.append(f"- Rejected: {len(rejected)} expenses")

    lines.append("\nRecent Expenses:")
    for exp in expenses[:10]:
        lines.append(
            f"- {exp.currency} {format_amount(exp.amount)} | {exp.description or exp.category or 'Expense'} | "
            f"{exp.vendor or 'Unknown vendor'} | {exp.status} | {_date(exp.expense_date)}"
        )

    by_category: Dict[str, float] = defaultdict(float)
    for exp in expenses:
        by_category[exp.category or "Uncategorized"] += float(exp.amount)
    lines.append("\nExpenses by Category:")
    for category, amount in _sorted_totals(by_category):
        lines.append(f"- {category}: {currency} {format_amount(amount)}")


def _payments_section(db: Session, organization_id: str, lines: List[str]) -> None:
    payments = (
        db.query(models.Payment)
        .filter(models.Payment.organization_id == organization_id)
        .order_by(models.Payment.created_at.desc())
        .limit(10)
        .all()
    )
    if not payments:
        return
    pending = [p for p in payments if p.status in ("pending_approval", "scheduled")]
    completed = [p for p in payments if p.status == "completed"]
    lines.append("\n## Payments Summary")
    lines.append(f"- Pending/scheduled: {len(pending)} payments")
    lines.append(f"- Completed recently: {len(completed)} payments")
    if pending:
        lines.append("\nUpcoming payments:")
        for payment in pending[:3]:
            name = payment.beneficiary.name if payment.beneficiary else "Unknown"
            lines.append(f"- {name}: {payment.currency} {format_amount(payment.amount)} ({payment.status})")


def _beneficiaries_section(db: Session, organization_id: str, lines: List[str]) -> None:
    beneficiaries = (
        db.query(models.Beneficiary)
        .filter(models.Beneficiary.organization_id == organization_id)
        .filter(models.Beneficiary.is_active.is_(True))
        .order_by(models.Beneficiary.name)
        .limit(20)
        .all()
    )
    if not beneficiaries:
        return
    lines.append("\n## Available Beneficiaries (for payments)")
    lines.append("These are the existing payment recipients the user can pay:")
    for b in beneficiaries:
        vendor = f" ({b.vendor_type})" if b.vendor_type else ""
        bank = f" - {b.bank_name}" if b.bank_name else ""
        lines.append(f"- {b.name}{vendor}{bank}")


def _clients_section(invoices: List[models.Invoice], lines: List[str]) -> None:
    clients = list(OrderedDict.fromkeys(inv.client_name for inv in invoices))
    if not clients:
        return
    lines.append("\n## Existing Invoice Clients")
    lines.append("These are clients the user has previously invoiced:")
    lines.extend(f"- {client}" for client in clients)


def _cards_section(db: Session, organization_id: str, lines: List[str]) -> None:
    cards = (
        db.query(models.Card)
        .filter(models.Card.organization_id == organization_id)
        .order_by(models.Card.created_at)
        .limit(10)
        .all()
    )
    if not cards:
        return
    lines.append("\n## Cards Summary")
    lines.append(f"Total cards: {len(cards)}")
    for card in cards:
        last4 = card.card_number_last4 or "****"
        limit_info = f"Limit: AED {format_amount(card.spending_limit)}" if card.spending_limit else "No limit set"
        monthly = card.controls.monthly_limit if card.controls else None
        monthly_info = f" | Monthly limit: AED {format_amount(monthly)}" if monthly else ""
        lines.append(f"- {card.cardholder_name} ({card.card_type}, ****{last4}): {card.status} | {limit_info}{monthly_info}")

    card_txs = (
        db.query(models.CardTransaction)
        .filter(models.CardTransaction.card_id.in_([card.id for card in cards]))
        .order_by(models.CardTransaction.created_at.desc())
        .limit(20)
        .all()
    )
    if not card_txs:
        return

    lines.append("\n## Card Transactions (Recent)")
    lines.append(f"Total spent on cards recently: AED {format_amount(sum(tx.amount for tx in card_txs))}")

    by_card: Dict[str, List[models.CardTransaction]] = defaultdict(list)
    for tx in card_txs:
        by_card[tx.card_id].append(tx)
    for card in cards:
        txs = by_card.get(card.id)
        if not txs:
            continue
        lines.append(
            f"\n### {card.cardholder_name} (****{card.card_number_last4 or '****'}) - "
            f"Spent: AED {format_amount(sum(tx.amount for tx in txs))}"
        )
        for tx in txs[:5]:
            lines.append(
                f"- {tx.currency} {format_amount(tx.amount)} | {tx.merchant_name or 'Unknown merchant'} | "
                f"{tx.merchant_category or 'General'} | {tx.status} | {_date(tx.created_at)}"
            )

    by_category: Dict[str, float] = defaultdict(float)
    for tx in card_txs:
        by_category[tx.merchant_category or "Other"] += float(tx.amount)
    lines.append("\n### Card Spending by Category:")
    for category, amount in _sorted_totals(by_category):
        lines.append(f"- {category}: AED {format_amount(amount)}")


def build_financial_context(db: Session, organization_id: str) -> str:
    lines: List[str] = []
    account_ids = _accounts_section(db, organization_id, lines)
    _transactions_section(db, account_ids, lines)
    invoices = (
        db.query(models.Invoice)
        .filter(models.Invoice.organization_id == organization_id)
        .order_by(models.Invoice.created_at.desc())
        .limit(10)
        .all()
    )
    _invoices_section(invoices, lines)
    _expenses_section(db, organization_id, lines)
    _payments_section(db, organization_id, lines)
    _beneficiaries_section(db, organization_id, lines)
    _clients_section(invoices, lines)
    _cards_section(db, organization_id, lines)
    return "\n".join(lines)


def build_system_prompt(context: str) -> str:
    data_block = DATA_BLOCK_TEMPLATE.format(context=context) if context else NO_DATA_MESSAGE
    return SYSTEM_PROMPT_TEMPLATE.format(data_block=data_block)
