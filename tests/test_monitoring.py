def test_health_and_root(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["status"] == "running"


def test_requests_are_buffered_with_redacted_headers(client):
    client.get("/health", headers={"Authorization": "Bearer secret"})
    logs = client.get("/v1/monitoring/logs", params={"type_filter": "request"}).json()["logs"]
    health = [entry for entry in logs if entry["path"] == "/health"][0]
    assert health["headers"]["authorization"] == "***"


def test_json_bodies_are_captured(client, demo_org):
    client.post("/v1/payment-links", json={"amount": 12, "description": "Tip"})
    logs = client.get("/v1/monitoring/logs").json()["logs"]
    request = [e for e in logs if e["type"] == "request" and e["path"] == "/v1/payment-links"][0]
    assert request["body"] == {"amount": 12, "description": "Tip"}
    response = [e for e in logs if e["type"] == "response" and e["path"] == "/v1/payment-links"][0]
    assert response["status_code"] == 201
    assert response["duration_ms"] >= 0


def test_clearing_logs_leaves_a_marker(client):
    client.get("/health")
    assert client.delete("/v1/monitoring/logs").json() == {"status": "cleared"}
    logs = client.get("/v1/monitoring/logs", params={"type_filter": "system"}).json()["logs"]
    assert logs[0]["message"] == "Log buffer cleared"


def test_metrics_count_status_codes(client):
    client.get("/health")
    client.get("/v1/onboarding/cases/missing")
    metrics = client.get("/v1/monitoring/metrics").json()
    assert metrics["status_codes"]["200"] >= 1
    assert metrics["status_codes"]["404"] == 1
    assert metrics["endpoints"]["/health"] == 1
    assert metrics["total_errors"] == 0
