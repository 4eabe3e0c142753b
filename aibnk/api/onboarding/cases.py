from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from aibnk.api import models
from aibnk.api.database import utcnow
from aibnk.api.onboarding.progress import EDITABLE_CASE_STATUSES, OnboardingProgress, progress_for_case

logger = logging.getLogger(__name__)

DEFAULT_SLA_TEXT = "Typical review time: 1-2 business days"

# target -> statuses it may be reached from
CASE_TRANSITIONS: Dict[str, tuple] = {
    "submitted": ("draft", "needs_info"),
    "in_review": ("submitted",),
    "approved": ("in_review",),
    "not_approved": ("in_review",),
    "needs_info": ("in_review",),
}

STATUS_LABELS = {
    "draft": ("Draft", "Your application has not been submitted yet."),
    "submitted": ("Submitted", "Your application has been received and is awaiting review."),
    "in_review": ("In Review", "Our team is reviewing your application."),
    "needs_info": ("Needs Information", "We need additional information to proceed."),
    "approved": ("Approved", "Congratulations! Your application has been approved."),
    "not_approved": ("Not Approved", "Unfortunately, we couldn't approve your application at this time."),
}

TIMELINE_STEPS = (
    ("submitted", "Application Submitted"),
    ("validation", "Document Validation"),
    ("compliance", "Compliance Review"),
    ("account_setup", "Account Setup"),
)


class CaseTransitionError(RuntimeError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Onboarding case cannot move from {current} to {target}")
        self.current = current
        self.target = target


class CaseLockedError(RuntimeError):
    """The case has been submitted and its records can no longer change."""


def can_transition(current: str, target: str) -> bool:
    return current in CASE_TRANSITIONS.get(target, ())


def transition(case: models.OnboardingCase, target: str) -> models.OnboardingCase:
    if not can_transition(case.status, target):
        raise CaseTransitionError(case.status, target)
    logger.info("Onboarding case %s: %s -> %s", case.id, case.status, target)
    case.status = target
    return case


def ensure_editable(case: models.OnboardingCase) -> None:
    if case.status not in EDITABLE_CASE_STATUSES:
        raise CaseLockedError(f"Onboarding case is {case.status} and can no longer be edited")


def record_event(
    db: Session,
    case_id: str,
    event_type: str,
    *,
    actor: str = "user",
    metadata: Dict[str, Any] | None = None,
) -> models.OnboardingEvent:
    event = models.OnboardingEvent(case_id=case_id, event_type=event_type, actor=actor, metadata_=metadata)
    db.add(event)
    return event


def refresh_progress(db: Session, case: models.OnboardingCase) -> OnboardingProgress:
    """Recompute progress from the case's records and store the percentage."""
    db.flush()
    # Rows added by case_id alone are not in the loaded collections yet
    db.expire(case)
    progress = progress_for_case(case)
    if case.status in EDITABLE_CASE_STATUSES:
        case.progress_percent = progress.percent
        db.add(case)
    return progress


def submit(db: Session, case: models.OnboardingCase) -> models.OnboardingCase:
    transition(case, "submitted")
    case.submitted_at = utcnow()
    case.progress_percent = 100
    case.sla_text = case.sla_text or DEFAULT_SLA_TEXT
    db.add(case)
    record_event(db, case.id, "case_submitted", actor="user")
    return case


def move_to_review(db: Session, case: models.OnboardingCase) -> models.OnboardingCase:
    transition(case, "in_review")
    db.add(case)
    record_event(
        db,
        case.id,
        "case_in_review",
        actor="system",
        metadata={"note": "Application moved to review queue"},
    )
    return case


def decide(db: Session, case: models.OnboardingCase, status: str, note: str | None = None) -> models.OnboardingCase:
    transition(case, status)
    db.add(case)
    record_event(db, case.id, f"case_{status}", actor="system", metadata={"note": note} if note else None)
    return case


def current_timeline_step(status: str) -> int:
    if status == "submitted":
        return 0
    if status == "in_review":
        return 1
    if status == "approved":
        return 3
    return 1


def status_view(case: models.OnboardingCase) -> Dict[str, Any]:
    label, description = STATUS_LABELS.get(case.status, STATUS_LABELS["submitted"])
    current = current_timeline_step(case.status)
    timeline: List[Dict[str, Any]] = [
        {"id": step_id, "label": step_label, "complete": index < current, "current": index == current}
        for index, (step_id, step_label) in enumerate(TIMELINE_STEPS)
    ]
    return {
        "case_id": case.id,
        "status": case.status,
        "label": label,
        "description": description,
        "sla_text": case.sla_text,
        "current_step": current,
        "timeline": timeline,
    }
