"""Banking assistant: streams gateway completions grounded in the org's data."""
from __future__ import annotations

import logging
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from aibnk.api import schemas
from aibnk.api.database import get_db
from aibnk.api.deps import get_org_id
from aibnk.api.llm import gateway_client
from aibnk.api.llm.context import build_financial_context, build_system_prompt
from aibnk.api.llm.sse import encode_delta, encode_done
from aibnk.api.utils.chat_events import log_chat_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/chat", tags=["chat"])


def _system_prompt(db: Session, org_id: str) -> str:
    try:
        context = build_financial_context(db, org_id)
    except Exception as exc:
        logger.error("Failed to build financial context for %s: %s", org_id, exc)
        log_chat_event("chat.context_failed", organization_id=org_id, error=str(exc))
        context = ""
    return build_system_prompt(context)


def _relay(deltas: Iterator[str], org_id: str) -> Iterator[str]:
    chars = 0
    for content in deltas:
        chars += len(content)
        yield encode_delta(content)
    yield encode_done()
    log_chat_event("chat.completed", organization_id=org_id, stream=True, chars=chars)


@router.post("", response_model=schemas.ChatReply)
def chat(payload: schemas.ChatRequest, org_id: str = Depends(get_org_id), db: Session = Depends(get_db)):
    messages = [message.model_dump() for message in payload.messages]
    log_chat_event("chat.request", organization_id=org_id, messages=len(messages), stream=payload.stream)

    system_prompt = _system_prompt(db, org_id)
    try:
        deltas = gateway_client.stream_chat(system_prompt, messages)
    except gateway_client.GatewayError as exc:
        logger.error("AI gateway error: %s", exc)
        log_chat_event("chat.gateway_error", organization_id=org_id, status_code=exc.status_code, error=str(exc))
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    if payload.stream:
        return StreamingResponse(
            _relay(deltas, org_id),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
            },
        )

    reply = "".join(deltas)
    log_chat_event("chat.completed", organization_id=org_id, stream=False, chars=len(reply))
    return schemas.ChatReply(reply=reply)
