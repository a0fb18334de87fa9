"""Main FastAPI application for the Gwen assistant."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

import logfire
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .agent.logging import _ensure_logfire
from .catalog.sources import get_catalog_service
from .chatlog import get_chat_log
from .config import settings
from .conversation.service import ConversationService, get_conversation_service
from .conversation.state import SessionStore, get_session_store
from .conversation.suggestions import MISSING_INPUT_SUGGESTIONS

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Please provide a message and session ID."


class ChatRequest(BaseModel):
    """Payload sent to the `/chat` endpoint by the storefront widget."""

    message: Optional[str] = None
    sessionId: Optional[str] = None


class ChatResponse(BaseModel):
    """Response schema returned by the `/chat` endpoint."""

    response: str
    sessionId: str
    suggestions: List[str]
    mode: str
    handoff: Optional[str] = None
    handoffUrl: Optional[str] = None


async def _sweep_sessions(store: SessionStore, interval: float) -> None:
    """Evict idle sessions every ``interval`` seconds until cancelled."""

    while True:
        await asyncio.sleep(interval)
        try:
            evicted = await store.sweep()
        except Exception:  # pragma: no cover
            logger.exception("Session sweep failed")
            continue
        if evicted:
            logger.info("Evicted %d idle sessions", evicted)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    _ensure_logfire()
    sweeper = asyncio.create_task(
        _sweep_sessions(get_session_store(), settings.session_sweep_seconds)
    )
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        await get_catalog_service().aclose()
        await get_chat_log().aclose()


app = FastAPI(title="Gwen Assistant API", version="0.1.0", lifespan=lifespan)


@app.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat_endpoint(
    request: ChatRequest,
    service: ConversationService = Depends(get_conversation_service),
) -> Any:
    """Handle one message from the storefront chat widget."""

    message = (request.message or "").strip()
    session_id = (request.sessionId or "").strip()
    if not message or not session_id:
        return JSONResponse(
            status_code=400,
            content={
                "response": MISSING_INPUT_MESSAGE,
                "suggestions": list(MISSING_INPUT_SUGGESTIONS),
            },
        )

    result = await service.handle_turn(session_id, message)
    return ChatResponse(
        response=result.response,
        sessionId=result.session_id,
        suggestions=result.suggestions,
        mode=result.mode.value,
        handoff=result.handoff,
        handoffUrl=result.handoff_url,
    )


@app.get("/health")
async def healthcheck(
    service: ConversationService = Depends(get_conversation_service),
) -> Dict[str, Any]:
    """Report service status together with catalog and knowledge details."""

    store = service.store
    with logfire.span("health check"):
        return {
            "status": "healthy",
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "catalog": service.catalog.mode,
            "knowledge": service.knowledge.counts(),
            "sessions": len(store) if hasattr(store, "__len__") else None,
        }


__all__ = ["ChatRequest", "ChatResponse", "app"]
