"""Timer-driven stand-in for back-office document checks and case pickup.

Uploads schedule two follow-up steps (``uploaded -> validating`` and
``validating -> accepted|rejected``); submissions schedule the move to
``in_review``. Every step opens its own session, re-reads the row and only acts
when the row still matches what was scheduled. A step that lost the race
(document re-uploaded, case already decided) is logged and dropped.
"""
from __future__ import annotations

import logging
import os
import threading
from datetime import datetime
from typing import Callable, List

from aibnk.api import models
from aibnk.api.database import session_scope
from aibnk.api.onboarding import cases as case_machine
from aibnk.api.onboarding import documents as doc_machine

logger = logging.getLogger(__name__)

DOC_VALIDATING_DELAY_SECONDS = float(os.getenv("DOC_VALIDATING_DELAY_SECONDS", "1"))
DOC_DECISION_DELAY_SECONDS = float(os.getenv("DOC_DECISION_DELAY_SECONDS", "3"))
CASE_REVIEW_DELAY_SECONDS = float(os.getenv("CASE_REVIEW_DELAY_SECONDS", "5"))


class TransitionScheduler:
    """Runs callbacks on daemon timers and remembers them for shutdown."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: List[threading.Timer] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        timer = threading.Timer(delay, self._run, args=(callback,))
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Scheduled onboarding transition failed")

    def cancel_all(self) -> None:
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()


scheduler = TransitionScheduler()


def _load_current_document(db, document_id: str, uploaded_at: datetime, expected: str):
    document = db.get(models.OnboardingDocument, document_id)
    if document is None:
        logger.info("Dropping step for document %s: row no longer exists", document_id)
        return None
    if document.uploaded_at != uploaded_at:
        logger.info("Dropping stale step for document %s: it was uploaded again", document_id)
        return None
    if document.status != expected:
        logger.info(
            "Dropping step for document %s: expected %s, found %s",
            document_id,
            expected,
            document.status,
        )
        return None
    return document


def start_validation(document_id: str, uploaded_at: datetime) -> None:
    with session_scope() as db:
        document = _load_current_document(db, document_id, uploaded_at, "uploaded")
        if document is None:
            return
        doc_machine.transition(document, "validating")
        db.add(document)


def finish_validation(document_id: str, uploaded_at: datetime) -> None:
    with session_scope() as db:
        document = _load_current_document(db, document_id, uploaded_at, "validating")
        if document is None:
            return
        decision = doc_machine.decide(document)
        doc_machine.apply_decision(document, decision)
        db.add(document)
        case_machine.record_event(
            db,
            document.case_id,
            f"document_{decision.status}",
            actor="system",
            metadata={
                "document_type": document.document_type,
                "reason": decision.reason_code,
                "notes": decision.notes,
            },
        )
        case = db.get(models.OnboardingCase, document.case_id)
        if case is not None:
            case_machine.refresh_progress(db, case)


def move_case_to_review(case_id: str) -> None:
    with session_scope() as db:
        case = db.get(models.OnboardingCase, case_id)
        if case is None or case.status != "submitted":
            logger.info("Dropping review pickup for case %s", case_id)
            return
        case_machine.move_to_review(db, case)


def schedule_document_validation(document_id: str, uploaded_at: datetime) -> None:
    scheduler.schedule(DOC_VALIDATING_DELAY_SECONDS, lambda: start_validation(document_id, uploaded_at))
    scheduler.schedule(DOC_DECISION_DELAY_SECONDS, lambda: finish_validation(document_id, uploaded_at))


def schedule_review_pickup(case_id: str) -> None:
    scheduler.schedule(CASE_REVIEW_DELAY_SECONDS, lambda: move_case_to_review(case_id))
