from __future__ import annotations

import logging
import os
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from aibnk.api import models
from aibnk.api.banking import card_controls
from aibnk.api.database import init_db, session_scope, utcnow
from aibnk.api.deps import DEMO_ACCOUNT_ID, DEMO_ORG_ID
from aibnk.api.middleware.logging_middleware import LoggingMiddleware
from aibnk.api.onboarding import simulator
from aibnk.api.routers import (
    accounts,
    beneficiaries,
    cards,
    chat,
    credit,
    dashboard,
    expenses,
    invoices,
    monitoring,
    notifications,
    onboarding,
    onboarding_documents,
    payment_links,
    payments,
    search,
)
from aibnk.api.utils.uploads import UPLOAD_DIR

logger = logging.getLogger(__name__)

SEED_DEMO = os.getenv("AIBNK_SEED_DEMO", "true").lower() in ("1", "true", "yes")


def seed_data() -> None:
    """Seed the demo organization and its activity if the DB is empty."""
    with session_scope() as session:
        if session.query(models.Organization).count() > 0:
            return

        now = utcnow()
        today = now.date()

        org = models.Organization(
            id=DEMO_ORG_ID,
            name="TechServe Solutions LLC",
            legal_form="Limited Liability Company",
            jurisdiction="Dubai, UAE",
            trade_license_number="DED-12345",
            registered_address="Office 1205, Business Bay Tower, Dubai, UAE",
            business_activity="IT Consulting and Software Development Services",
        )
        session.add(org)

        account = models.Account(
            id=DEMO_ACCOUNT_ID,
            organization_id=org.id,
            account_name="Business Current Account",
            account_number="1001234567",
            iban="AE070331234567890123456",
            currency="AED",
            is_primary=True,
            created_at=now - timedelta(days=180),
        )
        session.add(account)

        for name, bank, iban, vendor_type in (
            ("Emirates Office Supplies", "Emirates NBD", "AE460260001015333439801", "supplier"),
            ("Gulf Cloud Hosting", "Mashreq Bank", "AE210330000010193029102", "software"),
            ("Al Noor Properties", "ADCB", "AE880030000223344556677", "rent"),
        ):
            session.add(models.Beneficiary(
                organization_id=org.id,
                name=name,
                bank_name=bank,
                iban=iban,
                vendor_type=vendor_type,
                currency="AED",
                country="UAE",
            ))

        balance = 0.0
        history = (
            (75, "credit", 85000, "Acme Retail Group", "Consulting retainer", "sales"),
            (60, "debit", 12000, "Al Noor Properties", "Office rent", "rent"),
            (45, "credit", 42500, "Blue Ocean Logistics", "Software delivery milestone", "sales"),
            (30, "debit", 3450.5, "Gulf Cloud Hosting", "Cloud hosting", "software"),
            (21, "credit", 28000, "Desert Rose Hotels", "IT support contract", "sales"),
            (14, "debit", 1890, "Emirates Office Supplies", "Office supplies", "office"),
            (7, "credit", 15750, "Acme Retail Group", "Change request CR-17", "sales"),
            (2, "debit", 12000, "Al Noor Properties", "Office rent", "rent"),
        )
        for days_ago, kind, amount, counterparty, description, category in history:
            balance += amount if kind == "credit" else -amount
            session.add(models.Transaction(
                account_id=account.id,
                type=kind,
                amount=amount,
                currency="AED",
                status="completed",
                description=description,
                counterparty_name=counterparty,
                category=category,
                created_at=now - timedelta(days=days_ago),
            ))
        account.balance = round(balance, 2)
        account.available_balance = round(balance, 2)

        for seq, client, total, status, issued_days_ago in (
            (1, "Acme Retail Group", 31500, "paid", 50),
            (2, "Blue Ocean Logistics", 18900, "sent", 20),
            (3, "Desert Rose Hotels", 9450, "draft", 3),
        ):
            subtotal = round(total / 1.05, 2)
            issue_date = today - timedelta(days=issued_days_ago)
            invoice = models.Invoice(
                organization_id=org.id,
                invoice_number=f"INV-{today.year}-{seq:03d}",
                client_name=client,
                issue_date=issue_date,
                due_date=issue_date + timedelta(days=30),
                currency="AED",
                subtotal=subtotal,
                tax_rate=5,
                tax_amount=round(total - subtotal, 2),
                total=total,
                status=status,
                sent_at=now - timedelta(days=issued_days_ago) if status != "draft" else None,
                paid_at=now - timedelta(days=issued_days_ago - 10) if status == "paid" else None,
            )
            invoice.line_items = [models.InvoiceLineItem(
                description="Professional services",
                quantity=1,
                unit_price=subtotal,
                amount=subtotal,
            )]
            session.add(invoice)

        for description, amount, category, vendor, status, days_ago in (
            ("Client lunch", 420, "meals", "Zuma Dubai", "pending", 4),
            ("Taxi to DIFC", 85, "transport", "Careem", "approved", 9),
            ("Conference ticket", 2500, "training", "GITEX", "pending", 12),
        ):
            session.add(models.Expense(
                organization_id=org.id,
                description=description,
                amount=amount,
                currency="AED",
                expense_date=today - timedelta(days=days_ago),
                category=category,
                vendor=vendor,
                status=status,
            ))

        card = models.Card(
            organization_id=org.id,
            account_id=account.id,
            card_type="virtual",
            cardholder_name="Sara Al Mansoori",
            card_number_last4="4821",
            status="active",
            spending_limit=20000,
            monthly_limit=20000,
            expires_at=card_controls.expiry_from(today),
        )
        card.controls = models.CardControls(**card_controls.default_controls(20000))
        card.transactions = [
            models.CardTransaction(
                amount=amount,
                currency="AED",
                merchant_name=merchant,
                merchant_category=category,
                status="completed",
                created_at=now - timedelta(days=days_ago),
            )
            for merchant, category, amount, days_ago in (
                ("Emirates Airline", "travel", 2350, 10),
                ("Carrefour", "shopping", 310.75, 5),
                ("Salt Bae Dubai", "dining", 640, 1),
            )
        ]
        session.add(card)
    logger.info("Seeded demo organization %s", DEMO_ORG_ID)


def create_app() -> FastAPI:
    app = FastAPI(
        title="AIBNK Business Banking API",
        description="Accounts, payments, invoicing, cards, credit, KYB onboarding and the banking assistant",
        version="1.0.0",
    )

    # ---- REQUEST LOG ----
    app.add_middleware(LoggingMiddleware)

    # ---- CORS ----
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---- STARTUP / SHUTDOWN ----
    @app.on_event("startup")
    def on_startup():
        logger.info("Initializing database")
        init_db()
        if SEED_DEMO:
            seed_data()
        logger.info("Startup complete")

    @app.on_event("shutdown")
    def on_shutdown():
        simulator.scheduler.cancel_all()

    # ---- HEALTH CHECK ENDPOINT ----
    @app.get("/health", tags=["system"])
    def health():
        return {"status": "ok"}

    # ---- ROOT ENDPOINT ----
    @app.get("/", tags=["system"])
    def root():
        return {"status": "running", "api": "AIBNK Business Banking API"}

    # ---- ROUTERS ----
    app.include_router(accounts.router)
    app.include_router(dashboard.router)
    app.include_router(beneficiaries.router)
    app.include_router(payments.router)
    app.include_router(payment_links.router)
    app.include_router(invoices.router)
    app.include_router(expenses.router)
    app.include_router(cards.router)
    app.include_router(credit.router)
    app.include_router(notifications.router)
    app.include_router(search.router)
    app.include_router(onboarding.router)
    app.include_router(onboarding_documents.router)
    app.include_router(chat.router)
    app.include_router(monitoring.router)

    app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR), check_dir=False), name="uploads")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.getenv("API_PORT", "8090")),
    )
