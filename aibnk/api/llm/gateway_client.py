"""HTTP client for the hosted chat-completions gateway."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterator, List

import requests

from aibnk.api.llm.sse import iter_sse_deltas

logger = logging.getLogger(__name__)

AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
AI_GATEWAY_MODEL = os.getenv("AI_GATEWAY_MODEL", "google/gemini-2.5-flash")
AI_GATEWAY_TIMEOUT = int(os.getenv("AI_GATEWAY_TIMEOUT_SECONDS", "120"))

RATE_LIMIT_MESSAGE = "Rate limits exceeded. Please try again in a moment."
CREDITS_MESSAGE = "AI credits exhausted. Please add funds to continue."
UNAVAILABLE_MESSAGE = "AI service temporarily unavailable"


class GatewayError(RuntimeError):
    """Raised when the gateway cannot serve a completion.

    ``status_code`` is the HTTP status the API should answer with.
    """

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


def _api_key() -> str:
    # Read per call so the key can be rotated without a restart
    key = os.getenv("AI_GATEWAY_API_KEY", "").strip()
    if not key:
        raise GatewayError("AI_GATEWAY_API_KEY is not configured", status_code=500)
    return key


def build_payload(system_prompt: str, messages: List[Dict[str, str]], *, model: str | None = None) -> Dict[str, Any]:
    return {
        "model": (model or AI_GATEWAY_MODEL).strip(),
        "messages": [{"role": "system", "content": system_prompt}, *messages],
        "stream": True,
    }


def _raise_for_gateway_status(resp: requests.Response) -> None:
    if resp.status_code == 429:
        raise GatewayError(RATE_LIMIT_MESSAGE, status_code=429)
    if resp.status_code == 402:
        raise GatewayError(CREDITS_MESSAGE, status_code=402)
    if resp.status_code >= 400:
        logger.error("AI gateway HTTP %s: %s", resp.status_code, resp.text[:1000])
        raise GatewayError(UNAVAILABLE_MESSAGE, status_code=500)


def open_stream(payload: Dict[str, Any], *, timeout: int | None = None) -> requests.Response:
    """POST the completion request and return the open streaming response.

    Status errors are raised before any byte is relayed so the caller can still
    answer with a plain JSON error.
    """
    headers = {"Authorization": f"Bearer {_api_key()}", "Content-Type": "application/json"}
    try:
        resp = requests.post(
            AI_GATEWAY_URL,
            json=payload,
            headers=headers,
            stream=True,
            timeout=timeout or AI_GATEWAY_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.error("AI gateway request failed: %s", exc)
        raise GatewayError(UNAVAILABLE_MESSAGE, status_code=500) from exc
    try:
        _raise_for_gateway_status(resp)
    except GatewayError:
        resp.close()
        raise
    return resp


def iter_completion(resp: requests.Response) -> Iterator[str]:
    """Yield content deltas from an open gateway response, closing it when done."""
    # text/event-stream without a charset would otherwise decode as latin-1
    resp.encoding = "utf-8"
    try:
        chunks = resp.iter_content(chunk_size=None, decode_unicode=True)
        yield from iter_sse_deltas(chunk for chunk in chunks if chunk)
    except requests.RequestException as exc:
        logger.warning("AI gateway stream interrupted: %s", exc)
    finally:
        resp.close()


def stream_chat(system_prompt: str, messages: List[Dict[str, str]], *, model: str | None = None) -> Iterator[str]:
    resp = open_stream(build_payload(system_prompt, messages, model=model))
    return iter_completion(resp)


def complete_chat(system_prompt: str, messages: List[Dict[str, str]], *, model: str | None = None) -> str:
    return "".join(stream_chat(system_prompt, messages, model=model))


__all__ = ["GatewayError", "build_payload", "complete_chat", "open_stream", "stream_chat"]
