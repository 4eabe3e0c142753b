from datetime import date, timedelta

import pytest

from aibnk.api.banking import invoicing
from aibnk.api.database import utcnow


def _invoice(client, **overrides):
    body = {
        "client_name": "Emirates Logistics",
        "client_email": "ap@emirateslogistics.ae",
        "issue_date": date.today().isoformat(),
        "due_date": (date.today() + timedelta(days=30)).isoformat(),
        "line_items": [
            {"description": "Consulting", "quantity": 3, "unit_price": 1500},
            {"description": "Hosting", "quantity": 1, "unit_price": 250},
        ],
        "tax_rate": 5,
    }
    body.update(overrides)
    return client.post("/v1/invoices", json=body)


def test_next_invoice_number_uses_highest_sequence_of_the_year():
    existing = ["INV-2026-007", "INV-2026-002", "INV-2025-031", "custom"]
    assert invoicing.next_invoice_number(existing, 2026) == "INV-2026-008"
    assert invoicing.next_invoice_number(existing, 2027) == "INV-2027-001"


def test_totals_round_each_step():
    totals = invoicing.compute_totals(
        [{"description": "Widget", "quantity": 3, "unit_price": 33.333}],
        tax_rate=5,
    )
    assert totals["line_items"][0]["amount"] == 100.0
    assert totals["subtotal"] == 100.0
    assert totals["tax_amount"] == 5.0
    assert totals["total"] == 105.0


def test_create_invoice_computes_totals_and_number(client, demo_org):
    resp = _invoice(client)
    assert resp.status_code == 201
    body = resp.json()
    year = utcnow().year
    assert body["invoice_number"] == f"INV-{year}-001"
    assert body["status"] == "draft"
    assert body["subtotal"] == 4750.0
    assert body["tax_amount"] == 237.5
    assert body["total"] == 4987.5
    assert [item["amount"] for item in body["line_items"]] == [4500.0, 250.0]

    assert client.get("/v1/invoices/next-number").json() == {"invoice_number": f"INV-{year}-002"}


def test_send_immediately_marks_invoice_sent(client, demo_org):
    body = _invoice(client, send_immediately=True).json()
    assert body["status"] == "sent"
    assert body["sent_at"] is not None


@pytest.mark.parametrize(
    "overrides",
    [
        {"line_items": []},
        {"issue_date": "2026-03-10", "due_date": "2026-03-01"},
    ],
)
def test_invalid_invoices_are_rejected(client, demo_org, overrides):
    assert _invoice(client, **overrides).status_code == 422


def test_listing_flips_past_due_invoices_to_overdue(client, demo_org):
    _invoice(client, issue_date="2024-01-01", due_date="2024-01-31", send_immediately=True)
    _invoice(client, issue_date="2024-01-01", due_date="2024-01-31")

    statuses = sorted(inv["status"] for inv in client.get("/v1/invoices").json())
    assert statuses == ["draft", "overdue"]


def test_invoice_stats(client, demo_org):
    sent = _invoice(client, send_immediately=True).json()
    _invoice(client, issue_date="2024-01-01", due_date="2024-01-31", send_immediately=True)
    paid = _invoice(client, send_immediately=True).json()
    client.patch(f"/v1/invoices/{paid['id']}/status", json={"status": "paid"})

    stats = client.get("/v1/invoices/stats").json()
    assert stats["total_outstanding"] == round(sent["total"] * 2, 2)
    assert stats["overdue"] == sent["total"]
    assert stats["paid_last_30_days"] == paid["total"]


def test_paying_invoice_notifies(client, demo_org):
    invoice = _invoice(client, send_immediately=True).json()
    body = client.patch(f"/v1/invoices/{invoice['id']}/status", json={"status": "paid"}).json()
    assert body["status"] == "paid"
    assert body["paid_at"] is not None

    note = client.get("/v1/notifications").json()["items"][0]
    assert note["title"] == "Invoice Paid"
    assert invoice["invoice_number"] in note["description"]


@pytest.mark.parametrize("terminal", ["paid", "cancelled"])
def test_terminal_invoice_status_is_final(client, demo_org, terminal):
    invoice = _invoice(client).json()
    client.patch(f"/v1/invoices/{invoice['id']}/status", json={"status": terminal})
    resp = client.patch(f"/v1/invoices/{invoice['id']}/status", json={"status": "sent"})
    assert resp.status_code == 409


def test_dashboard_counts_outstanding_invoices(client, demo_org):
    first = _invoice(client, send_immediately=True).json()
    _invoice(client)
    body = client.get("/v1/dashboard").json()
    assert body["pending_invoices"] == {"total": first["total"], "count": 1}
    assert body["organization"]["name"] == "TechServe Solutions LLC"
    assert body["onboarding_status"] is None
