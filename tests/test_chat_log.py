"""Tests for the chat log sinks and their selection."""

from __future__ import annotations

from dataclasses import replace

import pytest

import gwen.chatlog as chatlog
from gwen.chatlog import JsonlChatLog, LoggingChatLog, SqlChatLog, build_chat_log
from gwen.logging import ConversationLogger


@pytest.mark.anyio
async def test_jsonl_chat_log_appends_one_line_per_message(tmp_path) -> None:
    path = tmp_path / "logs" / "chat.jsonl"
    sink = JsonlChatLog(path)

    await sink.append("s-1", "user", "Hello")
    await sink.append("s-1", "assistant", "Hi! How can I help?")

    rows = ConversationLogger(path).read()
    assert [(row["role"], row["message"]) for row in rows] == [
        ("user", "Hello"),
        ("assistant", "Hi! How can I help?"),
    ]
    assert all(row["session_id"] == "s-1" and "timestamp" in row for row in rows)


def test_sink_selection_prefers_database_then_file(monkeypatch, tmp_path) -> None:
    base = replace(chatlog.settings, database_url=None, chat_log_path=None)

    monkeypatch.setattr(chatlog, "settings", base)
    assert isinstance(build_chat_log(), LoggingChatLog)

    monkeypatch.setattr(chatlog, "settings", replace(base, chat_log_path=tmp_path / "chat.jsonl"))
    assert isinstance(build_chat_log(), JsonlChatLog)

    with_database = replace(base, database_url="postgres://user:pw@localhost/gwen")
    monkeypatch.setattr(chatlog, "settings", with_database)
    assert with_database.async_database_url == "postgresql+asyncpg://user:pw@localhost/gwen"
    assert isinstance(build_chat_log(), SqlChatLog)
