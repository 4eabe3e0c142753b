import logging
import threading

import pytest

from aibnk.api import models
from aibnk.api.database import session_scope
from aibnk.api.onboarding import simulator
from aibnk.api.onboarding.progress import REQUIRED_DOCUMENT_TYPES

USER = {"X-User-Id": "user-123"}


@pytest.fixture
def case_id(client):
    return client.post("/v1/onboarding/cases", headers=USER).json()["id"]


@pytest.fixture
def uploaded_document(client, case_id):
    """(id, uploaded_at) of a document whose timers have not fired yet."""
    doc_type = REQUIRED_DOCUMENT_TYPES[0]
    resp = client.post(
        f"/v1/onboarding/cases/{case_id}/documents/{doc_type}",
        files={"file": (f"{doc_type}.pdf", b"%PDF-1.4 scanned page", "application/pdf")},
    )
    assert resp.status_code == 201
    with session_scope() as session:
        document = session.query(models.OnboardingDocument).filter_by(case_id=case_id).one()
        return document.id, document.uploaded_at


def _document_status(document_id):
    with session_scope() as session:
        return session.get(models.OnboardingDocument, document_id).status


def test_timer_callback_errors_are_logged_not_raised(caplog):
    timers = simulator.TransitionScheduler()
    ran = threading.Event()

    def failing_step():
        ran.set()
        raise RuntimeError("registry offline")

    with caplog.at_level(logging.ERROR, logger=simulator.logger.name):
        timers.schedule(0, failing_step)
        assert ran.wait(2)
        for timer in list(timers._timers):
            timer.join(2)

    assert "Scheduled onboarding transition failed" in caplog.text
    assert "registry offline" in caplog.text


def test_cancel_all_stops_pending_timers():
    timers = simulator.TransitionScheduler()
    calls = []
    timers.schedule(30, lambda: calls.append("late"))
    pending = list(timers._timers)

    timers.cancel_all()
    for timer in pending:
        timer.join(2)

    assert calls == []
    assert not any(timer.is_alive() for timer in pending)
    assert timers._timers == []


def test_decision_step_skips_document_not_yet_validating(client, case_id, uploaded_document):
    document_id, uploaded_at = uploaded_document
    simulator.finish_validation(document_id, uploaded_at)

    assert _document_status(document_id) == "uploaded"
    events = [e["event_type"] for e in client.get(f"/v1/onboarding/cases/{case_id}/events").json()]
    assert "document_accepted" not in events
    assert "document_rejected" not in events


def test_steps_run_in_order_when_rows_match(uploaded_document):
    document_id, uploaded_at = uploaded_document
    simulator.start_validation(document_id, uploaded_at)
    assert _document_status(document_id) == "validating"
    simulator.finish_validation(document_id, uploaded_at)
    assert _document_status(document_id) == "accepted"


def test_steps_for_missing_document_are_dropped():
    simulator.start_validation("no-such-document", None)
    simulator.finish_validation("no-such-document", None)


def test_review_pickup_skips_case_that_is_not_submitted(client, case_id):
    simulator.move_case_to_review(case_id)
    assert client.get(f"/v1/onboarding/cases/{case_id}").json()["status"] == "draft"


def test_review_pickup_for_unknown_case_is_dropped():
    simulator.move_case_to_review("no-such-case")
