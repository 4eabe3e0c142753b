from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


TransactionType = Literal["credit", "debit"]
PaymentStatus = Literal["draft", "pending_approval", "scheduled", "processing", "completed", "failed", "cancelled"]
InvoiceStatus = Literal["draft", "sent", "viewed", "paid", "overdue", "cancelled"]
ExpenseStatus = Literal["pending", "approved", "rejected", "reimbursed"]
CardType = Literal["physical", "virtual"]
CardChannel = Literal["pos", "online", "atm", "contactless"]
CreditPurpose = Literal["inventory", "equipment", "expansion", "cashflow", "marketing", "other"]
OnboardingStatus = Literal["draft", "submitted", "in_review", "needs_info", "approved", "not_approved"]
ReviewDecision = Literal["approved", "not_approved", "needs_info"]
DocumentType = Literal[
    "trade_license",
    "moa_aoa",
    "emirates_id_front",
    "emirates_id_back",
    "passport",
    "proof_of_address",
]
DocumentStatus = Literal["missing", "uploaded", "validating", "accepted", "rejected"]
PersonRole = Literal["owner", "director", "authorized_signatory"]
AccountUsePurpose = Literal["invoice_clients", "pay_suppliers", "both"]
VolumeBand = Literal["0_50k", "50_200k", "200k_plus"]
CustomerLocation = Literal["uae", "gcc", "international"]
PepStatus = Literal["no", "yes", "unsure"]
PrefillSource = Literal["registry_lookup", "manual_entry"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---- Ledger ----

class OrganizationRead(ORMModel):
    id: str
    name: str
    legal_form: Optional[str] = None
    jurisdiction: Optional[str] = None
    trade_license_number: Optional[str] = None


class AccountRead(ORMModel):
    id: str
    organization_id: str
    account_name: str
    account_number: str
    iban: Optional[str] = None
    currency: str
    balance: float
    available_balance: float
    is_primary: bool
    status: str
    created_at: datetime


class AccountDetail(AccountRead):
    organization_name: Optional[str] = None


class TransactionRead(ORMModel):
    id: str
    account_id: str
    type: TransactionType
    amount: float
    currency: str
    status: str
    description: Optional[str] = None
    reference: Optional[str] = None
    counterparty_name: Optional[str] = None
    category: Optional[str] = None
    created_at: datetime


class FeedEntry(BaseModel):
    id: str
    type: TransactionType
    amount: float
    currency: str
    description: str
    counterparty_name: Optional[str] = None
    reference: Optional[str] = None
    category: Optional[str] = None
    status: str
    created_at: datetime
    source: Literal["account", "card"]


class TransactionSummary(BaseModel):
    incoming_total: float
    incoming_count: int
    outgoing_total: float
    outgoing_count: int


class PendingInvoicesSummary(BaseModel):
    total: float
    count: int


class DashboardRead(BaseModel):
    account: Optional[AccountRead] = None
    organization: Optional[OrganizationRead] = None
    recent_transactions: List[FeedEntry] = Field(default_factory=list)
    transaction_summary: Optional[TransactionSummary] = None
    pending_invoices: PendingInvoicesSummary
    onboarding_status: Optional[OnboardingStatus] = None


# ---- Payments ----

class BeneficiaryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    bank_name: Optional[str] = None
    iban: Optional[str] = None
    account_number: Optional[str] = None
    swift_code: Optional[str] = None
    vendor_type: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    currency: str = "AED"
    country: str = "UAE"


class BeneficiaryRead(ORMModel):
    id: str
    name: str
    bank_name: Optional[str] = None
    iban: Optional[str] = None
    vendor_type: Optional[str] = None
    currency: str
    country: Optional[str] = None
    is_active: bool


class PaymentCreate(BaseModel):
    beneficiary_id: str
    amount: float = Field(..., gt=0)
    currency: str = "AED"
    reference: Optional[str] = None
    purpose: Optional[str] = None
    scheduled_date: Optional[date] = None


class PaymentRead(ORMModel):
    id: str
    beneficiary_id: Optional[str] = None
    beneficiary_name: Optional[str] = None
    account_id: Optional[str] = None
    amount: float
    currency: str
    reference: Optional[str] = None
    purpose: Optional[str] = None
    status: PaymentStatus
    scheduled_date: Optional[date] = None
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime


class PaymentLinkCreate(BaseModel):
    amount: float = Field(..., gt=0)
    description: Optional[str] = None


class PaymentLinkRead(ORMModel):
    id: str
    link_code: str
    amount: float
    currency: str
    description: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_paid: bool
    paid_at: Optional[datetime] = None
    created_at: datetime


# ---- Invoices ----

class LineItemCreate(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(1, gt=0)
    unit_price: float = Field(..., ge=0)


class LineItemRead(ORMModel):
    id: str
    description: str
    quantity: float
    unit_price: float
    amount: float


class InvoiceCreate(BaseModel):
    client_name: str = Field(..., min_length=1)
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    issue_date: date
    due_date: Optional[date] = None
    line_items: List[LineItemCreate] = Field(default_factory=list)
    tax_rate: float = Field(0, ge=0, le=100)
    currency: str = "AED"
    notes: Optional[str] = None
    send_immediately: bool = False


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceRead(ORMModel):
    id: str
    invoice_number: str
    client_name: str
    client_email: Optional[str] = None
    issue_date: date
    due_date: Optional[date] = None
    currency: str
    subtotal: float
    tax_rate: Optional[float] = None
    tax_amount: Optional[float] = None
    total: float
    notes: Optional[str] = None
    status: InvoiceStatus
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    line_items: List[LineItemRead] = Field(default_factory=list)


class InvoiceStats(BaseModel):
    total_outstanding: float
    paid_last_30_days: float
    overdue: float


# ---- Expenses ----

class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    expense_date: date
    category: Optional[str] = None
    vendor: Optional[str] = None
    needs_approval: bool = True


class ExpenseStatusUpdate(BaseModel):
    status: ExpenseStatus


class ExpenseRead(ORMModel):
    id: str
    description: Optional[str] = None
    amount: float
    currency: str
    expense_date: date
    category: Optional[str] = None
    vendor: Optional[str] = None
    receipt_url: Optional[str] = None
    needs_approval: bool
    status: ExpenseStatus
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: datetime


class CategoryTotal(BaseModel):
    name: str
    value: float


class ExpenseStats(BaseModel):
    this_month: float
    pending: float
    pending_count: int
    categories: List[CategoryTotal] = Field(default_factory=list)


# ---- Cards ----

class CardCreate(BaseModel):
    card_type: CardType = "virtual"
    cardholder_name: str = Field(..., min_length=1)
    monthly_limit: float = Field(..., gt=0)


class CardControlsUpdate(BaseModel):
    daily_limit: Optional[float] = Field(default=None, ge=0)
    monthly_limit: Optional[float] = Field(default=None, ge=0)
    per_transaction_limit: Optional[float] = Field(default=None, ge=0)
    online_enabled: Optional[bool] = None
    contactless_enabled: Optional[bool] = None
    atm_enabled: Optional[bool] = None
    international_enabled: Optional[bool] = None
    allowed_categories: Optional[List[str]] = None
    blocked_categories: Optional[List[str]] = None


class CardControlsRead(ORMModel):
    daily_limit: Optional[float] = None
    monthly_limit: Optional[float] = None
    per_transaction_limit: Optional[float] = None
    online_enabled: bool
    contactless_enabled: bool
    atm_enabled: bool
    international_enabled: bool
    allowed_categories: Optional[List[str]] = None
    blocked_categories: Optional[List[str]] = None


class CardRead(ORMModel):
    id: str
    card_type: CardType
    cardholder_name: str
    card_number_last4: Optional[str] = None
    status: str
    spending_limit: Optional[float] = None
    monthly_limit: Optional[float] = None
    expires_at: Optional[date] = None
    created_at: datetime
    controls: Optional[CardControlsRead] = None


class CardPurchase(BaseModel):
    amount: float = Field(..., gt=0)
    currency: str = "AED"
    merchant_name: Optional[str] = None
    merchant_category: Optional[str] = None
    channel: CardChannel = "pos"
    international: bool = False


class CardTransactionRead(ORMModel):
    id: str
    card_id: str
    amount: float
    currency: str
    merchant_name: Optional[str] = None
    merchant_category: Optional[str] = None
    status: str
    declined_reason: Optional[str] = None
    created_at: datetime


class CardStats(BaseModel):
    total_spent: float
    transaction_count: int
    avg_transaction: int


# ---- Credit ----

class EligibilityFactor(BaseModel):
    name: str
    score: int
    status: Literal["excellent", "good", "fair", "poor"]
    description: str


class PrequalificationRead(ORMModel):
    id: str
    status: str
    overall_score: int
    factors: List[EligibilityFactor] = Field(default_factory=list)
    max_eligible_amount: Optional[float] = None
    eligibility_reason: Optional[str] = None
    assessed_at: datetime
    expires_at: Optional[datetime] = None


class CreditRequestCreate(BaseModel):
    requested_amount: float = Field(..., gt=0)
    purpose: CreditPurpose
    term_months: Literal[3, 6, 12, 24]
    repayment_preference: Optional[str] = None


class CreditRequestRead(ORMModel):
    id: str
    requested_amount: float
    purpose: Optional[str] = None
    term_months: Optional[int] = None
    status: str
    created_at: datetime


# ---- Notifications & search ----

class NotificationRead(ORMModel):
    id: str
    type: Literal["success", "alert", "payment", "card"]
    title: str
    description: str
    read: bool
    created_at: datetime


class NotificationList(BaseModel):
    items: List[NotificationRead] = Field(default_factory=list)
    unread_count: int


class SearchResult(BaseModel):
    id: str
    title: str
    subtitle: str
    type: Literal["transaction", "invoice", "payment", "card"]
    path: str


# ---- Onboarding ----

class CompanyProfileUpdate(BaseModel):
    issuing_authority: Optional[str] = None
    trade_license_number: Optional[str] = None
    company_legal_name: Optional[str] = None
    legal_form: Optional[str] = None
    registered_address: Optional[str] = None
    business_activity: Optional[str] = None
    operating_address: Optional[str] = None
    website: Optional[str] = None
    prefill_source: Optional[PrefillSource] = None
    confirmed_by_user: Optional[bool] = None


class CompanyProfileRead(ORMModel):
    case_id: str
    issuing_authority: Optional[str] = None
    trade_license_number: Optional[str] = None
    company_legal_name: Optional[str] = None
    legal_form: Optional[str] = None
    registered_address: Optional[str] = None
    business_activity: Optional[str] = None
    operating_address: Optional[str] = None
    website: Optional[str] = None
    prefill_source: Optional[PrefillSource] = None
    confirmed_by_user: bool


class RegistryLookupRequest(BaseModel):
    issuing_authority: str = ""
    trade_license_number: str = ""


class RegistryLookupResult(BaseModel):
    found: bool
    prefill_source: PrefillSource
    company_legal_name: Optional[str] = None
    legal_form: Optional[str] = None
    registered_address: Optional[str] = None
    business_activity: Optional[str] = None


class PersonUpsert(BaseModel):
    id: Optional[str] = None
    full_name: Optional[str] = None
    dob: Optional[date] = None
    nationality: Optional[str] = None
    roles: List[PersonRole] = Field(default_factory=lambda: ["owner", "director", "authorized_signatory"])
    ownership_percent: Optional[float] = Field(default=None, ge=0, le=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    is_uae_resident: bool = True
    emirates_id_number: Optional[str] = None


class PersonRead(ORMModel):
    id: str
    case_id: str
    full_name: Optional[str] = None
    dob: Optional[date] = None
    nationality: Optional[str] = None
    roles: List[PersonRole] = Field(default_factory=list)
    ownership_percent: Optional[float] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_uae_resident: bool
    emirates_id_number: Optional[str] = None


class ComplianceUpdate(BaseModel):
    account_use_purpose: Optional[AccountUsePurpose] = None
    expected_monthly_volume_band: Optional[VolumeBand] = None
    customer_location: Optional[CustomerLocation] = None
    cash_activity: Optional[bool] = None
    pep_confirmation: Optional[PepStatus] = None
    other_controllers: Optional[bool] = None


class ComplianceRead(ORMModel):
    case_id: str
    account_use_purpose: Optional[AccountUsePurpose] = None
    expected_monthly_volume_band: Optional[VolumeBand] = None
    customer_location: Optional[CustomerLocation] = None
    cash_activity: Optional[bool] = None
    pep_confirmation: Optional[PepStatus] = None
    other_controllers: Optional[bool] = None


class DocumentRead(BaseModel):
    id: Optional[str] = None
    case_id: str
    document_type: DocumentType
    status: DocumentStatus
    owner_person_id: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    expiry_date: Optional[date] = None
    validation_notes: Optional[str] = None
    rejection_reason_code: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class ProgressRead(BaseModel):
    percent: int
    company_complete: bool
    owner_complete: bool
    compliance_complete: bool
    document_statuses: Dict[str, DocumentStatus]
    documents_accepted: int
    next_step: str
    allowed_steps: List[str]
    can_submit: bool
    missing: List[str] = Field(default_factory=list)


class OnboardingCaseRead(ORMModel):
    id: str
    user_id: Optional[str] = None
    status: OnboardingStatus
    progress_percent: int
    entity_type: str
    risk_level: str
    sla_text: Optional[str] = None
    submitted_at: Optional[datetime] = None
    created_at: datetime


class OnboardingCaseDetail(OnboardingCaseRead):
    progress: ProgressRead


class OnboardingEventRead(ORMModel):
    id: str
    event_type: str
    actor: Literal["user", "system"]
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="metadata_")
    created_at: datetime


class CaseDecision(BaseModel):
    status: ReviewDecision
    note: Optional[str] = None


class TimelineStep(BaseModel):
    id: str
    label: str
    complete: bool
    current: bool


class CaseStatusRead(BaseModel):
    case_id: str
    status: OnboardingStatus
    label: str
    description: str
    sla_text: Optional[str] = None
    current_step: int
    timeline: List[TimelineStep] = Field(default_factory=list)


# ---- Chat ----

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    stream: bool = True


class ChatReply(BaseModel):
    reply: str
