"""Request/response logging middleware for monitoring and troubleshooting."""
from __future__ import annotations

import json
import logging
import time
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# In-memory log buffer for real-time monitoring (last 1000 entries)
_MAX_BUFFER_SIZE = 1000
_log_buffer: Deque[dict] = deque(maxlen=_MAX_BUFFER_SIZE)

_REDACTED_HEADERS = {"authorization", "cookie", "apikey", "x-api-key"}
SLOW_REQUEST_SECONDS = 1.0


def add_log_entry(entry: dict) -> None:
    """Add log entry to buffer."""
    entry["timestamp"] = datetime.now(timezone.utc).isoformat()
    _log_buffer.append(entry)


def get_recent_logs(limit: int = 100) -> list[dict]:
    """Get recent log entries."""
    if limit <= 0:
        return []
    return list(_log_buffer)[-limit:]


def clear_logs() -> None:
    """Clear log buffer."""
    _log_buffer.clear()


def _safe_headers(request: Request) -> dict:
    return {
        key: ("***" if key.lower() in _REDACTED_HEADERS else value)
        for key, value in request.headers.items()
    }


def _decode_body(raw: bytes):
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return raw.decode("utf-8", errors="ignore")[:500]


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses with timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        # Multipart uploads are not buffered into the log
        request_body = None
        content_type = request.headers.get("content-type", "")
        if request.method in ("POST", "PUT", "PATCH") and content_type.startswith("application/json"):
            request_body = _decode_body(await request.body())

        add_log_entry({
            "type": "request",
            "method": request.method,
            "path": str(request.url.path),
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else None,
            "headers": _safe_headers(request),
            "body": request_body,
        })
        logger.debug("Request: %s %s", request.method, request.url.path)

        try:
            response = await call_next(request)
        except Exception as exc:
            duration = time.time() - start_time
            add_log_entry({
                "type": "error",
                "method": request.method,
                "path": str(request.url.path),
                "error": str(exc),
                "error_type": type(exc).__name__,
                "duration_ms": round(duration * 1000, 2),
            })
            logger.error("Request error: %s %s - %s", request.method, request.url.path, exc)
            raise

        duration = time.time() - start_time

        # Only responses that still carry a rendered body are captured
        response_body = None
        body_bytes = getattr(response, "body", None)
        if isinstance(body_bytes, (bytes, bytearray)):
            response_body = _decode_body(bytes(body_bytes))

        add_log_entry({
            "type": "response",
            "method": request.method,
            "path": str(request.url.path),
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
            "body": response_body,
        })

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(
                "Slow request: %s %s took %.2fs (status: %s)",
                request.method,
                request.url.path,
                duration,
                response.status_code,
            )

        return response
