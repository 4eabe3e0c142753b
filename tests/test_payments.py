from datetime import timedelta

from aibnk.api import models
from aibnk.api.database import session_scope, utcnow


def _create_payment(client, beneficiary, amount, **extra):
    resp = client.post("/v1/payments", json={"beneficiary_id": beneficiary["id"], "amount": amount, **extra})
    assert resp.status_code == 201
    return resp.json()


def test_beneficiaries_are_listed_and_soft_deleted(client, beneficiary):
    names = [b["name"] for b in client.get("/v1/beneficiaries").json()]
    assert names == ["Gulf Cloud Hosting"]

    resp = client.delete(f"/v1/beneficiaries/{beneficiary['id']}")
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False
    assert client.get("/v1/beneficiaries").json() == []


def test_new_payment_waits_for_approval(client, beneficiary):
    payment = _create_payment(client, beneficiary, 1200, reference="INV-77")
    assert payment["status"] == "pending_approval"
    assert payment["beneficiary_name"] == "Gulf Cloud Hosting"


def test_payment_to_inactive_beneficiary_is_refused(client, beneficiary):
    client.delete(f"/v1/beneficiaries/{beneficiary['id']}")
    resp = client.post("/v1/payments", json={"beneficiary_id": beneficiary["id"], "amount": 10})
    assert resp.status_code == 404


def test_non_positive_amount_is_invalid(client, beneficiary):
    resp = client.post("/v1/payments", json={"beneficiary_id": beneficiary["id"], "amount": 0})
    assert resp.status_code == 422


def test_approval_debits_account_and_notifies(client, beneficiary, balances):
    payment = _create_payment(client, beneficiary, 2500.5, reference="INV-77")
    resp = client.post(f"/v1/payments/{payment['id']}/approve", headers={"X-User-Id": "approver-1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "completed"
    assert body["approved_by"] == "approver-1"
    assert body["processed_at"] is not None
    assert balances() == (7499.5, 7499.5)

    feed = client.get(f"/v1/accounts/{payment['account_id']}/transactions").json()
    assert feed[0]["description"] == "Payment to Gulf Cloud Hosting"
    assert feed[0]["reference"] == "INV-77"
    assert feed[0]["type"] == "debit"

    notes = client.get("/v1/notifications").json()
    assert notes["items"][0]["title"] == "Payment Completed"
    assert notes["items"][0]["description"] == "AED 2,500.5 sent to Gulf Cloud Hosting"


def test_future_dated_payment_is_scheduled(client, beneficiary, balances):
    later = (utcnow() + timedelta(days=5)).date().isoformat()
    payment = _create_payment(client, beneficiary, 400, scheduled_date=later)
    body = client.post(f"/v1/payments/{payment['id']}/approve").json()
    assert body["status"] == "scheduled"
    assert balances() == (10000.0, 10000.0)


def test_insufficient_funds_fails_payment(client, beneficiary, balances):
    payment = _create_payment(client, beneficiary, 25000)
    resp = client.post(f"/v1/payments/{payment['id']}/approve")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Insufficient funds"
    assert balances() == (10000.0, 10000.0)

    stored = [p for p in client.get("/v1/payments").json() if p["id"] == payment["id"]][0]
    assert stored["status"] == "failed"


def test_payment_can_only_be_approved_once(client, beneficiary):
    payment = _create_payment(client, beneficiary, 100)
    client.post(f"/v1/payments/{payment['id']}/approve")
    assert client.post(f"/v1/payments/{payment['id']}/approve").status_code == 409


def test_cancel_pending_payment(client, beneficiary):
    payment = _create_payment(client, beneficiary, 100)
    resp = client.post(f"/v1/payments/{payment['id']}/cancel")
    assert resp.json()["status"] == "cancelled"
    assert client.post(f"/v1/payments/{payment['id']}/approve").status_code == 409


def test_completed_payment_cannot_be_cancelled(client, beneficiary):
    payment = _create_payment(client, beneficiary, 100)
    client.post(f"/v1/payments/{payment['id']}/approve")
    assert client.post(f"/v1/payments/{payment['id']}/cancel").status_code == 409


def test_payment_from_other_org_is_hidden(client, beneficiary):
    payment = _create_payment(client, beneficiary, 100)
    resp = client.post(f"/v1/payments/{payment['id']}/approve", headers={"X-Organization-Id": "someone-else"})
    assert resp.status_code == 404


def test_payment_link_collects_into_operating_account(client, demo_org, balances):
    link = client.post("/v1/payment-links", json={"amount": 750, "description": "Workshop fee"}).json()
    assert len(link["link_code"]) == 8
    assert link["is_paid"] is False
    assert link["expires_at"] is not None

    resp = client.post(f"/v1/payment-links/{link['link_code']}/pay")
    assert resp.status_code == 200
    assert resp.json()["is_paid"] is True
    assert balances() == (10750.0, 10750.0)

    feed = client.get(f"/v1/accounts/{demo_org['account_id']}/transactions", params={"type": "credit"}).json()
    assert feed[0]["reference"] == f"LINK-{link['link_code']}"

    titles = [n["title"] for n in client.get("/v1/notifications").json()["items"]]
    assert "Payment Received" in titles

    assert client.post(f"/v1/payment-links/{link['link_code']}/pay").status_code == 409


def test_expired_payment_link_is_gone(client, demo_org):
    link = client.post("/v1/payment-links", json={"amount": 50}).json()
    with session_scope() as session:
        row = session.get(models.PaymentLink, link["id"])
        row.expires_at = utcnow() - timedelta(minutes=1)
    assert client.post(f"/v1/payment-links/{link['link_code']}/pay").status_code == 410


def test_unknown_payment_link(client, demo_org):
    assert client.post("/v1/payment-links/nope1234/pay").status_code == 404


def test_feed_merges_card_spend_and_filters(client, demo_org, add_transaction):
    add_transaction("credit", 5000, days_ago=2, description="Payment from Emirates Logistics", counterparty="Emirates Logistics")
    add_transaction("debit", 300, days_ago=1, description="DEWA bill", category="utilities")
    with session_scope() as session:
        card = models.Card(
            organization_id=demo_org["org_id"],
            account_id=demo_org["account_id"],
            card_type="virtual",
            cardholder_name="Layla Haddad",
            card_number_last4="4821",
        )
        session.add(card)
        session.flush()
        session.add(models.CardTransaction(
            card_id=card.id,
            amount=89.0,
            currency="AED",
            merchant_name="Careem",
            merchant_category="transport",
            status="completed",
        ))

    feed = client.get(f"/v1/accounts/{demo_org['account_id']}/transactions").json()
    assert [entry["source"] for entry in feed] == ["card", "account", "account"]
    assert feed[0]["reference"] == "Card •••• 4821"
    assert feed[0]["type"] == "debit"

    debits = client.get(f"/v1/accounts/{demo_org['account_id']}/transactions", params={"type": "debit"}).json()
    assert {entry["description"] for entry in debits} == {"Careem", "DEWA bill"}

    found = client.get(f"/v1/accounts/{demo_org['account_id']}/transactions", params={"q": "emirates"}).json()
    assert len(found) == 1

    limited = client.get(f"/v1/accounts/{demo_org['account_id']}/transactions", params={"limit": 2}).json()
    assert len(limited) == 2


def test_summary_covers_last_thirty_days(client, demo_org, add_transaction):
    add_transaction("credit", 1000, days_ago=3)
    add_transaction("credit", 500, days_ago=10)
    add_transaction("debit", 200, days_ago=4)
    add_transaction("credit", 9999, days_ago=45)

    summary = client.get(f"/v1/accounts/{demo_org['account_id']}/summary").json()
    assert summary == {
        "incoming_total": 1500.0,
        "incoming_count": 2,
        "outgoing_total": 200.0,
        "outgoing_count": 1,
    }


def test_account_detail_includes_organization(client, demo_org):
    body = client.get(f"/v1/accounts/{demo_org['account_id']}").json()
    assert body["organization_name"] == "TechServe Solutions LLC"
    assert body["is_primary"] is True
    assert [a["id"] for a in client.get("/v1/accounts").json()] == [demo_org["account_id"]]


def test_account_of_other_org_is_404(client, demo_org):
    resp = client.get(f"/v1/accounts/{demo_org['account_id']}", headers={"X-Organization-Id": "other"})
    assert resp.status_code == 404
