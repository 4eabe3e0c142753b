from datetime import date, datetime
from types import SimpleNamespace

import pytest

from aibnk.api.banking import card_controls


def _issue(client, card_type="virtual", monthly_limit=10000):
    resp = client.post(
        "/v1/cards",
        json={"card_type": card_type, "cardholder_name": "Layla Haddad", "monthly_limit": monthly_limit},
    )
    assert resp.status_code == 201
    return resp.json()


def _buy(client, card, amount, **extra):
    body = {"amount": amount, "merchant_name": "Noon", "merchant_category": "shopping", **extra}
    resp = client.post(f"/v1/cards/{card['id']}/transactions", json=body)
    assert resp.status_code == 201
    return resp.json()


def test_virtual_card_is_active_with_default_controls(client, demo_org):
    card = _issue(client)
    assert card["status"] == "active"
    assert len(card["card_number_last4"]) == 4
    assert card["spending_limit"] == 10000
    assert date.fromisoformat(card["expires_at"]).year == date.today().year + 3

    controls = card["controls"]
    assert controls["daily_limit"] == 2000
    assert controls["per_transaction_limit"] == 1000
    assert controls["international_enabled"] is False
    assert controls["allowed_categories"] == ["shopping", "travel", "dining", "transport"]
    assert controls["blocked_categories"] == []

    note = client.get("/v1/notifications").json()["items"][0]
    assert note["title"] == "Card Issued"
    assert note["type"] == "card"


def test_physical_card_waits_for_activation(client, demo_org):
    card = _issue(client, card_type="physical")
    assert card["status"] == "requested"
    assert client.post(f"/v1/cards/{card['id']}/freeze").status_code == 409


def test_freeze_and_unfreeze(client, demo_org):
    card = _issue(client)
    assert client.post(f"/v1/cards/{card['id']}/freeze").json()["status"] == "frozen"
    assert client.post(f"/v1/cards/{card['id']}/freeze").status_code == 409
    assert client.post(f"/v1/cards/{card['id']}/unfreeze").json()["status"] == "active"


def test_controls_patch_is_partial(client, demo_org):
    card = _issue(client)
    resp = client.patch(
        f"/v1/cards/{card['id']}/controls",
        json={"international_enabled": True, "monthly_limit": 20000},
    )
    body = resp.json()
    assert body["controls"]["international_enabled"] is True
    assert body["controls"]["daily_limit"] == 2000
    assert body["monthly_limit"] == 20000


def test_approved_purchase_counts_in_stats(client, demo_org):
    card = _issue(client)
    _buy(client, card, 300)
    _buy(client, card, 151)
    _buy(client, card, 5000)

    stats = client.get(f"/v1/cards/{card['id']}/stats").json()
    assert stats == {"total_spent": 451.0, "transaction_count": 2, "avg_transaction": 226}
    assert len(client.get(f"/v1/cards/{card['id']}/transactions").json()) == 3


@pytest.mark.parametrize(
    "purchase,reason",
    [
        ({"amount": 1500}, "Exceeds per-transaction limit"),
        ({"amount": 50, "merchant_category": "gambling"}, "Category 'gambling' is not allowed"),
        ({"amount": 50, "international": True}, "International transactions disabled"),
    ],
)
def test_declined_purchases(client, demo_org, purchase, reason):
    card = _issue(client)
    tx = _buy(client, card, **purchase)
    assert tx["status"] == "failed"
    assert tx["declined_reason"] == reason

    note = client.get("/v1/notifications").json()["items"][0]
    assert note["title"] == "Card Transaction Declined"
    assert note["type"] == "alert"


def test_frozen_card_declines(client, demo_org):
    card = _issue(client)
    client.post(f"/v1/cards/{card['id']}/freeze")
    assert _buy(client, card, 10)["declined_reason"] == "Card is frozen"


def test_daily_limit_accumulates(client, demo_org):
    card = _issue(client)
    for _ in range(2):
        assert _buy(client, card, 1000)["status"] == "completed"
    assert _buy(client, card, 1)["declined_reason"] == "Exceeds daily limit"


def test_disabled_channel_declines(client, demo_org):
    card = _issue(client)
    client.patch(f"/v1/cards/{card['id']}/controls", json={"online_enabled": False})
    assert _buy(client, card, 10, channel="online")["declined_reason"] == "Online payments disabled"
    assert _buy(client, card, 10, channel="pos")["status"] == "completed"


def _controls(**overrides):
    values = card_controls.default_controls(3000)
    values.update(overrides)
    return SimpleNamespace(**values)


def test_blocked_category_wins_over_allowed_list():
    card = SimpleNamespace(
        status="active",
        controls=_controls(blocked_categories=["Travel"]),
        transactions=[],
    )
    decision = card_controls.authorize(
        card, 10, category="travel", channel="pos", international=False, now=datetime(2026, 5, 3, 12)
    )
    assert decision.approved is False
    assert decision.reason == "Category 'travel' is blocked"


def test_monthly_limit_counts_only_completed_spend_this_month():
    now = datetime(2026, 5, 20, 12)
    history = [
        SimpleNamespace(amount=250, status="completed", created_at=datetime(2026, 5, 2)),
        SimpleNamespace(amount=250, status="failed", created_at=datetime(2026, 5, 3)),
        SimpleNamespace(amount=900, status="completed", created_at=datetime(2026, 4, 30)),
    ]
    card = SimpleNamespace(status="active", controls=_controls(monthly_limit=500), transactions=history)

    assert card_controls.authorize(card, 250, category="dining", channel="pos", international=False, now=now).approved
    declined = card_controls.authorize(card, 251, category="dining", channel="pos", international=False, now=now)
    assert declined.reason == "Exceeds monthly limit"


def test_leap_day_expiry():
    assert card_controls.expiry_from(date(2028, 2, 29)) == date(2031, 2, 28)
