"""Status machine for onboarding documents.

A document starts ``missing``, becomes ``uploaded`` when a file arrives, is
picked up for ``validating`` and ends ``accepted`` or ``rejected``. A finished
document may be replaced by a fresh upload. Validation itself is simulated;
see :mod:`aibnk.api.onboarding.simulator` for the timers driving it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, FrozenSet, Optional

from aibnk.api import models
from aibnk.api.database import utcnow

logger = logging.getLogger(__name__)

DOC_STATUSES = ("missing", "uploaded", "validating", "accepted", "rejected")
REJECTION_REASONS = ("expired", "unreadable", "mismatch_name", "missing_pages", "other")

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "missing": frozenset({"uploaded"}),
    "uploaded": frozenset({"uploaded", "validating"}),
    "validating": frozenset({"accepted", "rejected"}),
    "accepted": frozenset({"uploaded"}),
    "rejected": frozenset({"uploaded"}),
}


class DocumentTransitionError(RuntimeError):
    def __init__(self, document_type: str, current: str, target: str):
        super().__init__(f"Document '{document_type}' cannot move from {current} to {target}")
        self.document_type = document_type
        self.current = current
        self.target = target


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition(document: models.OnboardingDocument, target: str) -> models.OnboardingDocument:
    current = document.status or "missing"
    if not can_transition(current, target):
        raise DocumentTransitionError(document.document_type, current, target)
    document.status = target
    return document


@dataclass
class ValidationDecision:
    status: str
    reason_code: Optional[str] = None
    notes: Optional[str] = None


def decide(document: models.OnboardingDocument, *, today: date | None = None) -> ValidationDecision:
    today = today or utcnow().date()
    if document.expiry_date is not None and document.expiry_date < today:
        return ValidationDecision(
            "rejected",
            "expired",
            f"Document expired on {document.expiry_date.isoformat()}",
        )
    if not document.file_size:
        return ValidationDecision("rejected", "unreadable", "Uploaded file is empty")
    return ValidationDecision("accepted", None, "Document verified")


def mark_uploaded(
    document: models.OnboardingDocument,
    *,
    file_url: str,
    file_name: str,
    file_size: int,
    expiry_date: date | None = None,
    owner_person_id: str | None = None,
) -> models.OnboardingDocument:
    """Record a new file on the document and reset any earlier verdict."""
    transition(document, "uploaded")
    document.file_url = file_url
    document.file_name = file_name
    document.file_size = file_size
    document.expiry_date = expiry_date
    if owner_person_id is not None:
        document.owner_person_id = owner_person_id
    document.validation_notes = None
    document.rejection_reason_code = None
    document.uploaded_at = utcnow()
    return document


def apply_decision(document: models.OnboardingDocument, decision: ValidationDecision) -> models.OnboardingDocument:
    transition(document, decision.status)
    document.validation_notes = decision.notes
    document.rejection_reason_code = decision.reason_code
    logger.info(
        "Document %s (%s) %s%s",
        document.id,
        document.document_type,
        decision.status,
        f" ({decision.reason_code})" if decision.reason_code else "",
    )
    return document
