import json

import pytest

from aibnk.api.llm import context, gateway_client
from aibnk.api.routers import chat as chat_router
from aibnk.api.utils import chat_events

MESSAGES = {"messages": [{"role": "user", "content": "How is my cashflow?"}]}


@pytest.fixture
def fake_gateway(monkeypatch):
    seen = {}

    def fake_stream_chat(system_prompt, messages, model=None):
        seen["system_prompt"] = system_prompt
        seen["messages"] = messages
        return iter(["Cash ", "looks ", "healthy."])

    monkeypatch.setattr(gateway_client, "stream_chat", fake_stream_chat)
    return seen


def _sse_contents(body: str):
    contents = []
    for line in body.splitlines():
        if line.startswith("data: ") and line != "data: [DONE]":
            contents.append(json.loads(line[6:])["choices"][0]["delta"]["content"])
    return contents


def test_streaming_reply_is_relayed_as_sse(client, demo_org, add_transaction, fake_gateway):
    add_transaction("credit", 5000, counterparty="Emirates Logistics", description="Invoice settlement")
    resp = client.post("/v1/chat", json=MESSAGES)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert _sse_contents(resp.text) == ["Cash ", "looks ", "healthy."]
    assert resp.text.rstrip().endswith("data: [DONE]")

    prompt = fake_gateway["system_prompt"]
    assert "--- USER'S CURRENT FINANCIAL DATA ---" in prompt
    assert "Balance AED 10,000" in prompt
    assert "+AED 5,000 | Emirates Logistics | completed" in prompt
    assert fake_gateway["messages"] == MESSAGES["messages"]


def test_non_streaming_reply(client, demo_org, fake_gateway):
    resp = client.post("/v1/chat", json={**MESSAGES, "stream": False})
    assert resp.json() == {"reply": "Cash looks healthy."}


def test_org_without_records_still_gets_expense_note(client, fake_gateway):
    client.post("/v1/chat", json={**MESSAGES, "stream": False}, headers={"X-Organization-Id": "nobody"})
    prompt = fake_gateway["system_prompt"]
    assert "No expenses recorded yet." in prompt
    assert "## Account Summary" not in prompt


def test_context_failure_falls_back_to_no_data(client, demo_org, fake_gateway, monkeypatch):
    def broken_context(db, org_id):
        raise AttributeError("'NoneType' object has no attribute 'amount'")

    monkeypatch.setattr(chat_router, "build_financial_context", broken_context)
    resp = client.post("/v1/chat", json={**MESSAGES, "stream": False})
    assert resp.status_code == 200
    assert fake_gateway["system_prompt"].endswith(context.NO_DATA_MESSAGE)


def test_empty_context_uses_no_data_message():
    prompt = context.build_system_prompt("")
    assert prompt.endswith(context.NO_DATA_MESSAGE)


def test_empty_message_list_is_invalid(client, fake_gateway):
    assert client.post("/v1/chat", json={"messages": []}).status_code == 422


def test_missing_gateway_key_is_reported(client, demo_org):
    resp = client.post("/v1/chat", json=MESSAGES)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "AI_GATEWAY_API_KEY is not configured"


@pytest.mark.parametrize(
    "status,message",
    [
        (429, gateway_client.RATE_LIMIT_MESSAGE),
        (402, gateway_client.CREDITS_MESSAGE),
        (500, gateway_client.UNAVAILABLE_MESSAGE),
    ],
)
def test_gateway_errors_map_to_http_status(client, demo_org, monkeypatch, status, message):
    def failing_stream_chat(system_prompt, messages, model=None):
        raise gateway_client.GatewayError(message, status_code=status)

    monkeypatch.setattr(gateway_client, "stream_chat", failing_stream_chat)
    resp = client.post("/v1/chat", json=MESSAGES)
    assert resp.status_code == status
    assert resp.json()["detail"] == message


def test_chat_events_are_logged_per_organization(client, demo_org, fake_gateway):
    client.post("/v1/chat", json={**MESSAGES, "stream": False})
    client.post("/v1/chat", json={**MESSAGES, "stream": False}, headers={"X-Organization-Id": "other-org"})

    events = chat_events.read_chat_events(organization_id=demo_org["org_id"])
    assert [e["event"] for e in events] == ["chat.completed", "chat.request"]
    assert events[0]["chars"] == len("Cash looks healthy.")

    body = client.get("/v1/monitoring/chat-events", params={"limit": 3}).json()
    assert body["count"] == 3
    assert body["events"][0]["organization_id"] == "other-org"


def test_gateway_failures_reach_the_audit_trail(client, demo_org):
    client.post("/v1/chat", json=MESSAGES)
    failure = chat_events.read_chat_events(limit=1)[0]
    assert failure["event"] == "chat.gateway_error"
    assert failure["status_code"] == 500


def test_unreadable_audit_lines_are_skipped(demo_org):
    chat_events.log_chat_event("chat.request", demo_org["org_id"], messages=1)
    with chat_events.LOG_PATH.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n")
    assert [e["event"] for e in chat_events.read_chat_events()] == ["chat.request"]
