import pytest


@pytest.fixture
def steady_inflow(add_transaction):
    """Thirty 3,000 AED receipts spread across the last ninety days."""
    for day in range(30):
        add_transaction("credit", 3000, days_ago=day * 3, counterparty="Emirates Logistics")


def test_quiet_account_is_not_eligible(client, demo_org):
    body = client.get("/v1/credit/prequalification").json()
    assert body["status"] == "not_eligible"
    assert body["max_eligible_amount"] == 0
    scores = {f["name"]: f["score"] for f in body["factors"]}
    assert scores == {"Account Age": 25, "Transaction Volume": 0, "Payment History": 100, "Cash Flow": 0}
    assert body["overall_score"] == 31


def test_steady_inflow_prequalifies(client, steady_inflow):
    body = client.get("/v1/credit/prequalification").json()
    assert body["status"] == "pre_qualified"
    assert body["overall_score"] == 71
    # 30,000 monthly inflow x 3 x 0.71, rounded down to 5,000
    assert body["max_eligible_amount"] == 60000
    statuses = {f["name"]: f["status"] for f in body["factors"]}
    assert statuses["Cash Flow"] == "excellent"
    assert statuses["Account Age"] == "poor"


def test_assessment_is_reused_until_refreshed(client, steady_inflow):
    first = client.get("/v1/credit/prequalification").json()
    assert client.get("/v1/credit/prequalification").json()["id"] == first["id"]
    refreshed = client.post("/v1/credit/prequalification/refresh").json()
    assert refreshed["id"] != first["id"]


def test_failed_payments_lower_payment_history(client, steady_inflow, beneficiary):
    payment = client.post("/v1/payments", json={"beneficiary_id": beneficiary["id"], "amount": 10_000_000}).json()
    client.post(f"/v1/payments/{payment['id']}/approve")
    body = client.post("/v1/credit/prequalification/refresh").json()
    history = [f for f in body["factors"] if f["name"] == "Payment History"][0]
    assert history["score"] == 80
    assert history["description"] == "1 failed payment(s)"


def test_credit_request_within_limit(client, steady_inflow):
    client.get("/v1/credit/prequalification")
    resp = client.post(
        "/v1/credit/requests",
        json={"requested_amount": 50000, "purpose": "inventory", "term_months": 12},
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "applied"
    assert len(client.get("/v1/credit/requests").json()) == 1


def test_credit_request_above_limit_is_rejected(client, steady_inflow):
    client.get("/v1/credit/prequalification")
    resp = client.post(
        "/v1/credit/requests",
        json={"requested_amount": 75000, "purpose": "inventory", "term_months": 12},
    )
    assert resp.status_code == 422


def test_credit_request_needs_prequalification(client, demo_org):
    client.get("/v1/credit/prequalification")
    resp = client.post(
        "/v1/credit/requests",
        json={"requested_amount": 10000, "purpose": "cashflow", "term_months": 6},
    )
    assert resp.status_code == 422


@pytest.mark.parametrize(
    "payload",
    [
        {"requested_amount": 10000, "purpose": "inventory", "term_months": 9},
        {"requested_amount": 10000, "purpose": "holiday", "term_months": 12},
        {"requested_amount": 0, "purpose": "inventory", "term_months": 12},
    ],
)
def test_credit_request_validation(client, steady_inflow, payload):
    client.get("/v1/credit/prequalification")
    assert client.post("/v1/credit/requests", json=payload).status_code == 422


@pytest.mark.parametrize(
    "receipt,expected",
    [
        (10, 10_000),
        (1_000_000, 500_000),
    ],
)
def test_eligible_amount_is_floored_and_capped(client, add_transaction, receipt, expected):
    for day in range(30):
        add_transaction("credit", receipt, days_ago=day * 3)
    body = client.get("/v1/credit/prequalification").json()
    assert body["status"] == "pre_qualified"
    assert body["overall_score"] == 71
    assert body["max_eligible_amount"] == expected
