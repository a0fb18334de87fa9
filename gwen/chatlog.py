"""Persisted chat log sinks; a failed write never affects the conversation."""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncEngine

from .config import settings
from .db import create_engine, create_session_factory
from .logging import ConversationLogger
from .models import Base, ChatLog

logger = logging.getLogger(__name__)


class ChatLogSink(Protocol):
    async def append(self, session_id: str, role: str, message: str) -> None:
        ...

    async def aclose(self) -> None:
        ...


class SqlChatLog:
    """Stores messages in the ``chat_logs`` table, creating it on first use."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        self._ready = False
        self._ready_lock = asyncio.Lock()

    async def _ensure_schema(self) -> None:
        if self._ready:
            return
        async with self._ready_lock:
            if not self._ready:
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                self._ready = True

    async def append(self, session_id: str, role: str, message: str) -> None:
        try:
            await self._ensure_schema()
            async with self._session_factory() as session:
                session.add(ChatLog(session_id=session_id, role=role, message=message))
                await session.commit()
        except Exception:  # pragma: no cover
            logger.exception("Failed to persist chat message for session %s", session_id)

    async def aclose(self) -> None:
        await self._engine.dispose()


class JsonlChatLog:
    """Appends messages to a JSON lines file."""

    def __init__(self, path: Path) -> None:
        self._logger = ConversationLogger(path)

    async def append(self, session_id: str, role: str, message: str) -> None:
        try:
            await self._logger.log({"session_id": session_id, "role": role, "message": message})
        except OSError:
            logger.exception("Failed to append chat message for session %s", session_id)

    async def aclose(self) -> None:
        return None


class LoggingChatLog:
    """Writes messages to the application log when no store is configured."""

    async def append(self, session_id: str, role: str, message: str) -> None:
        logger.info("chat %s [%s]: %s", session_id, role, message)

    async def aclose(self) -> None:
        return None


def build_chat_log() -> ChatLogSink:
    """Pick the configured sink: database, then JSON lines, then the logger."""

    database_url = settings.async_database_url
    if database_url:
        return SqlChatLog(create_engine(database_url))
    if settings.chat_log_path is not None:
        return JsonlChatLog(settings.chat_log_path)
    return LoggingChatLog()


@lru_cache(maxsize=1)
def get_chat_log() -> ChatLogSink:
    """Return the process-wide chat log sink."""

    return build_chat_log()


__all__ = [
    "ChatLogSink",
    "JsonlChatLog",
    "LoggingChatLog",
    "SqlChatLog",
    "build_chat_log",
    "get_chat_log",
]
