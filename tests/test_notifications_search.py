from aibnk.api.main import seed_data


def _make_notifications(client, count):
    for amount in range(1, count + 1):
        link = client.post("/v1/payment-links", json={"amount": amount}).json()
        client.post(f"/v1/payment-links/{link['link_code']}/pay")


def test_notifications_unread_count_and_read(client, demo_org):
    _make_notifications(client, 3)
    body = client.get("/v1/notifications").json()
    assert body["unread_count"] == 3
    assert len(body["items"]) == 3

    first = body["items"][0]
    marked = client.post(f"/v1/notifications/{first['id']}/read").json()
    assert marked["read"] is True
    assert client.get("/v1/notifications").json()["unread_count"] == 2

    assert client.post("/v1/notifications/read-all").json() == {"updated": 2}
    assert client.get("/v1/notifications").json()["unread_count"] == 0


def test_notification_limit(client, demo_org):
    _make_notifications(client, 3)
    body = client.get("/v1/notifications", params={"limit": 2}).json()
    assert len(body["items"]) == 2
    assert body["unread_count"] == 3


def test_unknown_notification_is_404(client, demo_org):
    assert client.post("/v1/notifications/missing/read").status_code == 404


def test_short_queries_return_nothing(client, demo_org):
    seed_data()
    assert client.get("/v1/search", params={"q": "a"}).json() == []
    assert client.get("/v1/search", params={"q": " "}).json() == []


def test_search_across_kinds(client):
    seed_data()
    results = client.get("/v1/search", params={"q": "acme"}).json()
    kinds = {r["type"] for r in results}
    assert kinds == {"transaction", "invoice"}
    invoice = [r for r in results if r["type"] == "invoice"][0]
    assert invoice["subtitle"] == "Acme Retail Group - AED 31,500"
    assert invoice["path"] == "/invoices"

    cards = client.get("/v1/search", params={"q": "sara"}).json()
    assert cards[0]["type"] == "card"
    assert cards[0]["subtitle"] == "Virtual card •••• 4821"


def test_search_caps_each_kind_at_five(client, demo_org, add_transaction):
    for i in range(8):
        add_transaction("credit", 100 + i, days_ago=i, description=f"Retainer {i}")
    results = client.get("/v1/search", params={"q": "retainer"}).json()
    assert len(results) == 5
    assert results[0]["title"] == "Retainer 0"
    assert results[0]["subtitle"] == "+AED 100"


def test_wildcards_in_query_match_literally(client, demo_org, add_transaction):
    add_transaction("credit", 100, description="Alpha")
    add_transaction("credit", 200, description="Beta")
    add_transaction("credit", 300, description="50% deposit")
    add_transaction("credit", 400, description="500 units")

    assert client.get("/v1/search", params={"q": "%%"}).json() == []
    assert client.get("/v1/search", params={"q": "__"}).json() == []
    hits = client.get("/v1/search", params={"q": "50%"}).json()
    assert [h["title"] for h in hits] == ["50% deposit"]


def test_seeded_demo_data(client):
    seed_data()
    seed_data()

    accounts = client.get("/v1/accounts").json()
    assert len(accounts) == 1
    assert accounts[0]["balance"] == 141909.5

    dashboard = client.get("/v1/dashboard").json()
    assert dashboard["pending_invoices"] == {"total": 18900.0, "count": 1}
    assert len(dashboard["recent_transactions"]) == 5
    assert dashboard["recent_transactions"][0]["description"] == "Salt Bae Dubai"

    assert len(client.get("/v1/beneficiaries").json()) == 3
    assert len(client.get("/v1/cards").json()) == 1
