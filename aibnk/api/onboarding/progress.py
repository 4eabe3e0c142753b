"""Completion percentage and step gating for a KYB onboarding case.

The wizard stores four independent records per case: a company profile, the
persons (the first one is the owner), the compliance answers and one row per
uploaded document. Each record may be partially filled. This module folds them
into a single view:

* ``percent``: company 20, owner 20, compliance 20 and 8 for each of the five
  required documents once accepted.
* ``next_step``: the first incomplete section, ``review`` when everything is
  complete, ``status`` once the case has been submitted.
* ``allowed_steps``: a step may be entered when every earlier section is
  complete.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

COMPANY_WEIGHT = 20
OWNER_WEIGHT = 20
COMPLIANCE_WEIGHT = 20
DOCUMENTS_WEIGHT = 40

REQUIRED_DOCUMENT_TYPES = (
    "trade_license",
    "moa_aoa",
    "emirates_id_front",
    "emirates_id_back",
    "passport",
)
OPTIONAL_DOCUMENT_TYPES = ("proof_of_address",)
DOCUMENT_TYPES = REQUIRED_DOCUMENT_TYPES + OPTIONAL_DOCUMENT_TYPES

STEPS = ("company", "ownership", "compliance", "documents", "review")
EDITABLE_CASE_STATUSES = ("draft", "needs_info")

COMPANY_REQUIRED_FIELDS = (
    "issuing_authority",
    "trade_license_number",
    "company_legal_name",
    "legal_form",
    "registered_address",
    "business_activity",
)
OWNER_REQUIRED_FIELDS = ("full_name", "dob", "nationality")
COMPLIANCE_REQUIRED_FIELDS = (
    "account_use_purpose",
    "expected_monthly_volume_band",
    "customer_location",
    "pep_confirmation",
)

DOCUMENT_LABELS = {
    "trade_license": "Trade license",
    "moa_aoa": "MOA/AOA",
    "emirates_id_front": "Emirates ID (front)",
    "emirates_id_back": "Emirates ID (back)",
    "passport": "Passport",
    "proof_of_address": "Proof of address",
}


@dataclass
class OnboardingProgress:
    percent: int
    company_complete: bool
    owner_complete: bool
    compliance_complete: bool
    document_statuses: Dict[str, str]
    documents_accepted: int
    next_step: str
    allowed_steps: List[str]
    can_submit: bool
    missing: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "percent": self.percent,
            "company_complete": self.company_complete,
            "owner_complete": self.owner_complete,
            "compliance_complete": self.compliance_complete,
            "document_statuses": dict(self.document_statuses),
            "documents_accepted": self.documents_accepted,
            "next_step": self.next_step,
            "allowed_steps": list(self.allowed_steps),
            "can_submit": self.can_submit,
            "missing": list(self.missing),
        }


def _filled(record: Any, name: str) -> bool:
    value = getattr(record, name, None)
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def is_company_complete(profile: Any) -> bool:
    return profile is not None and bool(getattr(profile, "confirmed_by_user", False))


def primary_owner(persons: Optional[Sequence[Any]]) -> Any:
    if not persons:
        return None
    return persons[0]


def is_owner_complete(persons: Optional[Sequence[Any]]) -> bool:
    owner = primary_owner(persons)
    if owner is None:
        return False
    if not all(_filled(owner, name) for name in OWNER_REQUIRED_FIELDS):
        return False
    percent = getattr(owner, "ownership_percent", None)
    return percent is not None and float(percent) == 100


def is_compliance_complete(answers: Any) -> bool:
    return answers is not None and all(_filled(answers, name) for name in COMPLIANCE_REQUIRED_FIELDS)


def document_statuses(documents: Optional[Iterable[Any]]) -> Dict[str, str]:
    """Status per document type; types never uploaded are ``missing``."""
    statuses = {doc_type: "missing" for doc_type in DOCUMENT_TYPES}
    for doc in documents or ():
        doc_type = getattr(doc, "document_type", None)
        # The first row per type wins, matching a unique (case, type) table
        if doc_type in statuses and statuses[doc_type] == "missing":
            statuses[doc_type] = getattr(doc, "status", "missing") or "missing"
    return statuses


def compute_progress(
    profile: Any,
    persons: Optional[Sequence[Any]],
    answers: Any,
    documents: Optional[Iterable[Any]],
    *,
    case_status: str = "draft",
) -> OnboardingProgress:
    company_ok = is_company_complete(profile)
    owner_ok = is_owner_complete(persons)
    compliance_ok = is_compliance_complete(answers)
    statuses = document_statuses(documents)
    accepted = [t for t in REQUIRED_DOCUMENT_TYPES if statuses[t] == "accepted"]
    documents_ok = len(accepted) == len(REQUIRED_DOCUMENT_TYPES)

    score = 0.0
    if company_ok:
        score += COMPANY_WEIGHT
    if owner_ok:
        score += OWNER_WEIGHT
    if compliance_ok:
        score += COMPLIANCE_WEIGHT
    score += len(accepted) * (DOCUMENTS_WEIGHT / len(REQUIRED_DOCUMENT_TYPES))
    percent = max(0, min(100, int(round(score))))

    missing: List[str] = []
    if not company_ok:
        missing.append("Company details are not confirmed")
    if not owner_ok:
        missing.append("Owner details are incomplete")
    if not compliance_ok:
        missing.append("Compliance questions are unanswered")
    for doc_type in REQUIRED_DOCUMENT_TYPES:
        if statuses[doc_type] != "accepted":
            missing.append(f"{DOCUMENT_LABELS[doc_type]} is {statuses[doc_type]}")

    sections = [company_ok, owner_ok, compliance_ok, documents_ok]
    allowed = [STEPS[0]]
    for index, complete in enumerate(sections):
        if not complete:
            break
        allowed.append(STEPS[index + 1])

    editable = case_status in EDITABLE_CASE_STATUSES
    if not editable:
        next_step = "status"
    elif all(sections):
        next_step = "review"
    else:
        next_step = STEPS[sections.index(False)]

    return OnboardingProgress(
        percent=percent,
        company_complete=company_ok,
        owner_complete=owner_ok,
        compliance_complete=compliance_ok,
        document_statuses=statuses,
        documents_accepted=len(accepted),
        next_step=next_step,
        allowed_steps=allowed if editable else [],
        can_submit=editable and all(sections),
        missing=missing,
    )


def progress_for_case(case: Any) -> OnboardingProgress:
    return compute_progress(
        case.company_profile,
        list(case.persons),
        case.compliance_answers,
        list(case.documents),
        case_status=case.status,
    )
