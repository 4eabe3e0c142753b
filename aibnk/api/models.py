from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aibnk.api.database import Base, new_id, utcnow


class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    name: Mapped[str] = mapped_column(String(200))
    owner_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    legal_form: Mapped[str | None] = mapped_column(String(50), nullable=True)
    jurisdiction: Mapped[str | None] = mapped_column(String(120), nullable=True)
    trade_license_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    registered_address: Mapped[str | None] = mapped_column(String(400), nullable=True)
    business_activity: Mapped[str | None] = mapped_column(String(400), nullable=True)
    expected_monthly_volume: Mapped[float | None] = mapped_column(Float, nullable=True)
    website: Mapped[str | None] = mapped_column(String(200), nullable=True)

    accounts: Mapped[list["Account"]] = relationship("Account", back_populates="organization")


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)

    account_name: Mapped[str] = mapped_column(String(120), default="Business Current Account")
    account_number: Mapped[str] = mapped_column(String(34))
    iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    balance: Mapped[float] = mapped_column(Float, default=0.0)
    available_balance: Mapped[float] = mapped_column(Float, default=0.0)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(String(20), default="active")

    organization: Mapped[Organization] = relationship("Organization", back_populates="accounts")
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="account",
        cascade="all, delete-orphan",
    )


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)

    type: Mapped[str] = mapped_column(String(10))
    amount: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    status: Mapped[str] = mapped_column(String(20), default="completed")
    description: Mapped[str | None] = mapped_column(String(400), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    counterparty_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    counterparty_account: Mapped[str | None] = mapped_column(String(64), nullable=True)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    account: Mapped[Account] = relationship("Account", back_populates="transactions")


class Beneficiary(Base):
    __tablename__ = "beneficiaries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(200))
    bank_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    account_number: Mapped[str | None] = mapped_column(String(34), nullable=True)
    swift_code: Mapped[str | None] = mapped_column(String(11), nullable=True)
    vendor_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    country: Mapped[str | None] = mapped_column(String(60), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    address: Mapped[str | None] = mapped_column(String(400), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)
    account_id: Mapped[str | None] = mapped_column(ForeignKey("accounts.id"), nullable=True)
    beneficiary_id: Mapped[str | None] = mapped_column(ForeignKey("beneficiaries.id"), nullable=True)

    amount: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    purpose: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending_approval")
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    beneficiary: Mapped[Optional[Beneficiary]] = relationship("Beneficiary")


class PaymentLink(Base):
    __tablename__ = "payment_links"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)

    link_code: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    amount: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    description: Mapped[str | None] = mapped_column(String(400), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)

    invoice_number: Mapped[str] = mapped_column(String(40))
    client_name: Mapped[str] = mapped_column(String(200))
    client_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    client_address: Mapped[str | None] = mapped_column(String(400), nullable=True)
    issue_date: Mapped[date] = mapped_column(Date)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    subtotal: Mapped[float] = mapped_column(Float, default=0.0)
    tax_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    tax_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    total: Mapped[float] = mapped_column(Float, default=0.0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="draft")
    sent_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    line_items: Mapped[list["InvoiceLineItem"]] = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
    )


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    invoice_id: Mapped[str] = mapped_column(ForeignKey("invoices.id"), nullable=False, index=True)

    description: Mapped[str] = mapped_column(String(400))
    quantity: Mapped[float] = mapped_column(Float, default=1)
    unit_price: Mapped[float] = mapped_column(Float)
    amount: Mapped[float] = mapped_column(Float)

    invoice: Mapped[Invoice] = relationship("Invoice", back_populates="line_items")


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    description: Mapped[str | None] = mapped_column(String(400), nullable=True)
    amount: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    expense_date: Mapped[date] = mapped_column(Date)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    vendor: Mapped[str | None] = mapped_column(String(200), nullable=True)
    receipt_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    needs_approval: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)


class Card(Base):
    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)
    account_id: Mapped[str | None] = mapped_column(ForeignKey("accounts.id"), nullable=True)

    card_type: Mapped[str] = mapped_column(String(10), default="virtual")
    cardholder_name: Mapped[str] = mapped_column(String(200))
    card_number_last4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="requested")
    spending_limit: Mapped[float | None] = mapped_column(Float, nullable=True)
    monthly_limit: Mapped[float | None] = mapped_column(Float, nullable=True)
    expires_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    assigned_to: Mapped[str | None] = mapped_column(String(36), nullable=True)

    controls: Mapped[Optional["CardControls"]] = relationship(
        "CardControls",
        back_populates="card",
        uselist=False,
        cascade="all, delete-orphan",
    )
    transactions: Mapped[list["CardTransaction"]] = relationship(
        "CardTransaction",
        back_populates="card",
        cascade="all, delete-orphan",
    )


class CardControls(Base):
    __tablename__ = "card_controls"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    card_id: Mapped[str] = mapped_column(ForeignKey("cards.id"), nullable=False, unique=True)

    daily_limit: Mapped[float | None] = mapped_column(Float, nullable=True)
    monthly_limit: Mapped[float | None] = mapped_column(Float, nullable=True)
    per_transaction_limit: Mapped[float | None] = mapped_column(Float, nullable=True)
    online_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    contactless_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    atm_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    international_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    allowed_categories: Mapped[list | None] = mapped_column(JSON, nullable=True)
    blocked_categories: Mapped[list | None] = mapped_column(JSON, nullable=True)

    card: Mapped[Card] = relationship("Card", back_populates="controls")


class CardTransaction(Base):
    __tablename__ = "card_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    card_id: Mapped[str] = mapped_column(ForeignKey("cards.id"), nullable=False, index=True)

    amount: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(3), default="AED")
    merchant_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    merchant_category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="completed")
    declined_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)

    card: Mapped[Card] = relationship("Card", back_populates="transactions")


class CreditPrequalification(Base):
    __tablename__ = "credit_prequalifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    assessed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(20))
    overall_score: Mapped[int] = mapped_column(Integer, default=0)
    factors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    max_eligible_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    eligibility_reason: Mapped[str | None] = mapped_column(String(400), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class CreditRequest(Base):
    __tablename__ = "credit_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)

    requested_amount: Mapped[float] = mapped_column(Float)
    purpose: Mapped[str | None] = mapped_column(String(50), nullable=True)
    term_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    repayment_preference: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="applied")
    approved_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    interest_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    decision_note: Mapped[str | None] = mapped_column(Text, nullable=True)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)

    type: Mapped[str] = mapped_column(String(20))
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(String(400))
    read: Mapped[bool] = mapped_column(Boolean, default=False)


class OnboardingCase(Base):
    __tablename__ = "onboarding_cases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    status: Mapped[str] = mapped_column(String(20), default="draft")
    progress_percent: Mapped[int] = mapped_column(Integer, default=0)
    entity_type: Mapped[str] = mapped_column(String(60), default="dubai_single_owner_uae_resident")
    risk_level: Mapped[str] = mapped_column(String(10), default="low")
    sla_text: Mapped[str | None] = mapped_column(String(200), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    company_profile: Mapped[Optional["CompanyProfile"]] = relationship(
        "CompanyProfile",
        back_populates="case",
        uselist=False,
        cascade="all, delete-orphan",
    )
    compliance_answers: Mapped[Optional["ComplianceAnswers"]] = relationship(
        "ComplianceAnswers",
        back_populates="case",
        uselist=False,
        cascade="all, delete-orphan",
    )
    persons: Mapped[list["OnboardingPerson"]] = relationship(
        "OnboardingPerson",
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="OnboardingPerson.created_at",
    )
    documents: Mapped[list["OnboardingDocument"]] = relationship(
        "OnboardingDocument",
        back_populates="case",
        cascade="all, delete-orphan",
    )
    events: Mapped[list["OnboardingEvent"]] = relationship(
        "OnboardingEvent",
        back_populates="case",
        cascade="all, delete-orphan",
    )


class CompanyProfile(Base):
    __tablename__ = "company_profiles"

    case_id: Mapped[str] = mapped_column(ForeignKey("onboarding_cases.id"), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    issuing_authority: Mapped[str | None] = mapped_column(String(120), nullable=True)
    trade_license_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    company_legal_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    legal_form: Mapped[str | None] = mapped_column(String(120), nullable=True)
    registered_address: Mapped[str | None] = mapped_column(String(400), nullable=True)
    business_activity: Mapped[str | None] = mapped_column(String(400), nullable=True)
    operating_address: Mapped[str | None] = mapped_column(String(400), nullable=True)
    website: Mapped[str | None] = mapped_column(String(200), nullable=True)
    prefill_source: Mapped[str | None] = mapped_column(String(20), nullable=True)
    confirmed_by_user: Mapped[bool] = mapped_column(Boolean, default=False)

    case: Mapped[OnboardingCase] = relationship("OnboardingCase", back_populates="company_profile")


class OnboardingPerson(Base):
    __tablename__ = "onboarding_persons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    case_id: Mapped[str] = mapped_column(ForeignKey("onboarding_cases.id"), nullable=False, index=True)

    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(80), nullable=True)
    roles: Mapped[list] = mapped_column(JSON, default=list)
    ownership_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    is_uae_resident: Mapped[bool] = mapped_column(Boolean, default=True)
    emirates_id_number: Mapped[str | None] = mapped_column(String(40), nullable=True)

    case: Mapped[OnboardingCase] = relationship("OnboardingCase", back_populates="persons")


class ComplianceAnswers(Base):
    __tablename__ = "compliance_answers"

    case_id: Mapped[str] = mapped_column(ForeignKey("onboarding_cases.id"), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    account_use_purpose: Mapped[str | None] = mapped_column(String(20), nullable=True)
    expected_monthly_volume_band: Mapped[str | None] = mapped_column(String(20), nullable=True)
    customer_location: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cash_activity: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    pep_confirmation: Mapped[str | None] = mapped_column(String(10), nullable=True)
    other_controllers: Mapped[bool | None] = mapped_column(Boolean, default=False, nullable=True)

    case: Mapped[OnboardingCase] = relationship("OnboardingCase", back_populates="compliance_answers")


class OnboardingDocument(Base):
    __tablename__ = "onboarding_documents"
    __table_args__ = (UniqueConstraint("case_id", "document_type", name="uq_onboarding_documents_case_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    case_id: Mapped[str] = mapped_column(ForeignKey("onboarding_cases.id"), nullable=False, index=True)
    owner_person_id: Mapped[str | None] = mapped_column(ForeignKey("onboarding_persons.id"), nullable=True)

    document_type: Mapped[str] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(20), default="missing")
    file_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    validation_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    uploaded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    case: Mapped[OnboardingCase] = relationship("OnboardingCase", back_populates="documents")


class OnboardingEvent(Base):
    __tablename__ = "onboarding_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    case_id: Mapped[str] = mapped_column(ForeignKey("onboarding_cases.id"), nullable=False, index=True)

    event_type: Mapped[str] = mapped_column(String(60))
    actor: Mapped[str] = mapped_column(String(10), default="user")
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    case: Mapped[OnboardingCase] = relationship("OnboardingCase", back_populates="events")
