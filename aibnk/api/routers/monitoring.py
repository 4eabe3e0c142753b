"""Monitoring and log viewing endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter

from aibnk.api.middleware.logging_middleware import (
    add_log_entry,
    clear_logs,
    get_recent_logs,
)
from aibnk.api.utils.chat_events import read_chat_events

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/monitoring", tags=["monitoring"])


@router.get("/logs")
def get_logs(limit: int = 100, type_filter: str | None = None) -> Dict[str, Any]:
    """Get recent log entries."""
    logs = get_recent_logs(limit=limit)

    if type_filter:
        logs = [log for log in logs if log.get("type") == type_filter]

    return {
        "logs": logs,
        "count": len(logs),
        "total_in_buffer": len(get_recent_logs(limit=10000)),
    }


@router.delete("/logs")
def clear_log_buffer() -> Dict[str, str]:
    clear_logs()
    add_log_entry({
        "type": "system",
        "message": "Log buffer cleared",
    })
    return {"status": "cleared"}


@router.get("/metrics")
def get_metrics() -> Dict[str, Any]:
    """Response times, status codes and error types over the buffered window."""
    logs = get_recent_logs(limit=1000)
    requests_seen = [log for log in logs if log.get("type") == "request"]
    responses = [log for log in logs if log.get("type") == "response"]
    errors = [log for log in logs if log.get("type") == "error"]

    durations = sorted(r["duration_ms"] for r in responses if r.get("duration_ms"))

    metrics: Dict[str, Any] = {
        "total_requests": len(requests_seen),
        "total_responses": len(responses),
        "total_errors": len(errors),
        "response_times": {
            "min_ms": durations[0] if durations else 0,
            "max_ms": durations[-1] if durations else 0,
            "avg_ms": round(sum(durations) / len(durations), 2) if durations else 0,
            "p95_ms": durations[int(len(durations) * 0.95)] if durations else 0,
        },
        "status_codes": {},
        "endpoints": {},
        "errors_by_type": {},
    }

    for resp in responses:
        status = str(resp.get("status_code", 0))
        metrics["status_codes"][status] = metrics["status_codes"].get(status, 0) + 1
    for req in requests_seen:
        path = req.get("path", "unknown")
        metrics["endpoints"][path] = metrics["endpoints"].get(path, 0) + 1
    for err in errors:
        err_type = err.get("error_type", "Unknown")
        metrics["errors_by_type"][err_type] = metrics["errors_by_type"].get(err_type, 0) + 1

    return metrics


@router.get("/chat-events")
def get_chat_events(limit: int = 50, organization_id: str | None = None) -> Dict[str, Any]:
    """Recent banking-assistant audit events, newest first."""
    events = read_chat_events(organization_id=organization_id, limit=limit)
    return {"events": events, "count": len(events)}
