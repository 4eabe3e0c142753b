"""Audit trail of banking-assistant traffic, one JSON line per event.

Each record carries the organization it was made for, so the trail can be
read back per tenant by the monitoring endpoints.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
LOG_DIR = Path(os.getenv("AIBNK_LOG_DIR", str(PROJECT_ROOT / ".logs")))
LOG_PATH = LOG_DIR / "chat-events.log"

_LOCK = Lock()


def log_chat_event(event: str, organization_id: str, **fields: Any) -> None:
    record: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "organization_id": organization_id,
        **fields,
    }
    line = json.dumps(record, ensure_ascii=False, default=str)

    try:
        with _LOCK:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            with LOG_PATH.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
    except OSError as exc:
        logger.warning("Chat audit trail unavailable (%s): dropped %s for %s", exc, event, organization_id)


def read_chat_events(organization_id: Optional[str] = None, limit: int = 50) -> List[Dict[str, Any]]:
    """Newest-first events, optionally for a single organization."""
    with _LOCK:
        if not LOG_PATH.exists():
            return []
        lines = LOG_PATH.read_text(encoding="utf-8").splitlines()

    events: List[Dict[str, Any]] = []
    for line in reversed(lines):
        if len(events) >= limit:
            break
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping unreadable chat audit line")
            continue
        if organization_id and record.get("organization_id") != organization_id:
            continue
        events.append(record)
    return events


def clear_chat_events() -> None:
    with _LOCK:
        if LOG_PATH.exists():
            LOG_PATH.unlink()
