"""
Shared pytest fixtures for the AIBNK API tests.

Provides an isolated SQLite database, a seeded demo organization, a FastAPI
test client and a manual scheduler for the onboarding timers.
"""
import os
import tempfile
from datetime import timedelta
from pathlib import Path

import pytest

# Point storage at a scratch directory before the app modules build their engine
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="aibnk-tests-"))
os.environ["AIBNK_DB_URL"] = f"sqlite:///{_TMP_ROOT / 'test.db'}"
os.environ["AIBNK_UPLOAD_DIR"] = str(_TMP_ROOT / "uploads")
os.environ["AIBNK_LOG_DIR"] = str(_TMP_ROOT / "logs")
os.environ["AIBNK_SEED_DEMO"] = "false"
os.environ.pop("AI_GATEWAY_API_KEY", None)

from fastapi.testclient import TestClient  # noqa: E402

from aibnk.api import models  # noqa: E402
from aibnk.api.database import reset_db, session_scope, utcnow  # noqa: E402
from aibnk.api.deps import DEMO_ACCOUNT_ID, DEMO_ORG_ID  # noqa: E402
from aibnk.api.main import app  # noqa: E402
from aibnk.api.middleware.logging_middleware import clear_logs  # noqa: E402
from aibnk.api.onboarding import simulator  # noqa: E402
from aibnk.api.utils.chat_events import clear_chat_events  # noqa: E402


class ManualScheduler:
    """Collects scheduled callbacks; tests decide when the clock moves."""

    def __init__(self):
        self.pending = []

    def schedule(self, delay, callback):
        self.pending.append((delay, callback))

    def run_due(self, up_to: float):
        """Run callbacks whose delay is <= up_to, in delay order."""
        due = sorted((item for item in self.pending if item[0] <= up_to), key=lambda item: item[0])
        self.pending = [item for item in self.pending if item[0] > up_to]
        for _, callback in due:
            callback()
        return len(due)

    def run_all(self):
        count = 0
        while self.pending:
            count += self.run_due(max(delay for delay, _ in self.pending))
        return count

    def cancel_all(self):
        self.pending = []


@pytest.fixture(autouse=True)
def fresh_database():
    """Drop and recreate every table around each test."""
    reset_db()
    clear_logs()
    clear_chat_events()
    yield


@pytest.fixture(autouse=True)
def scheduler(monkeypatch):
    manual = ManualScheduler()
    monkeypatch.setattr(simulator, "scheduler", manual)
    return manual


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def demo_org():
    """Demo organization with one primary AED account holding 10,000."""
    with session_scope() as session:
        session.add(models.Organization(id=DEMO_ORG_ID, name="TechServe Solutions LLC"))
        session.add(models.Account(
            id=DEMO_ACCOUNT_ID,
            organization_id=DEMO_ORG_ID,
            account_name="Business Current Account",
            account_number="1001234567",
            currency="AED",
            balance=10000.0,
            available_balance=10000.0,
            is_primary=True,
        ))
    return {"org_id": DEMO_ORG_ID, "account_id": DEMO_ACCOUNT_ID}


@pytest.fixture
def add_transaction(demo_org):
    """Insert a completed account transaction `days_ago` days in the past."""

    def _add(kind, amount, *, days_ago=0, description=None, counterparty=None, category=None):
        with session_scope() as session:
            tx = models.Transaction(
                account_id=demo_org["account_id"],
                type=kind,
                amount=amount,
                currency="AED",
                status="completed",
                description=description,
                counterparty_name=counterparty,
                category=category,
                created_at=utcnow() - timedelta(days=days_ago),
            )
            session.add(tx)
            session.flush()
            return tx.id

    return _add


@pytest.fixture
def beneficiary(client, demo_org):
    resp = client.post("/v1/beneficiaries", json={"name": "Gulf Cloud Hosting", "bank_name": "Mashreq Bank"})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def balances():
    """Current (balance, available_balance) of the demo account."""

    def _read(account_id=DEMO_ACCOUNT_ID):
        with session_scope() as session:
            account = session.get(models.Account, account_id)
            return account.balance, account.available_balance

    return _read
