"""Tests for the in-memory session store and pending conversation states."""

from __future__ import annotations

import pytest

from gwen.conversation.state import (
    AwaitingBundleResponse,
    EducationProgress,
    InMemorySessionStore,
    NormalState,
    Session,
)


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.anyio
async def test_sweep_evicts_idle_sessions_only() -> None:
    clock = _Clock()
    store = InMemorySessionStore(idle_seconds=3600, maxsize=100, timer=clock)
    await store.put(Session(session_id="idle"))
    clock.now = 3000
    await store.put(Session(session_id="active"))

    clock.now = 3700
    evicted = await store.sweep()

    assert evicted == 1
    assert await store.get("idle") is None
    assert await store.get("active") is not None
    assert len(store) == 1


@pytest.mark.anyio
async def test_writing_a_session_back_restarts_its_idle_timer() -> None:
    clock = _Clock()
    store = InMemorySessionStore(idle_seconds=60, maxsize=10, timer=clock)
    session = Session(session_id="s")
    await store.put(session)
    clock.now = 50
    await store.put(session)
    clock.now = 100

    await store.sweep()

    assert await store.get("s") is session


@pytest.mark.anyio
async def test_delete_and_lock_are_per_session() -> None:
    store = InMemorySessionStore(idle_seconds=60, maxsize=10)
    await store.put(Session(session_id="a"))

    assert store.lock("a") is store.lock("a")
    assert store.lock("a") is not store.lock("b")

    await store.delete("a")
    assert await store.get("a") is None


def test_pending_state_round_trips_through_its_discriminator() -> None:
    session = Session(session_id="s", pending=AwaitingBundleResponse(sku="HAV-DIN-8"))

    restored = Session.model_validate(session.model_dump())

    assert isinstance(restored.pending, AwaitingBundleResponse)
    assert restored.pending.sku == "HAV-DIN-8"
    restored.clear_pending()
    assert isinstance(restored.pending, NormalState)


def test_education_topics_are_tracked_once() -> None:
    progress = EducationProgress()

    assert progress.educated is False
    assert progress.track("warranty") is True
    progress.track("warranty")
    progress.track("not-a-topic")
    assert progress.topics == ["warranty"]


def test_recent_history_window() -> None:
    session = Session(session_id="s")
    for index in range(12):
        session.add_message("user", f"message {index}")

    window = session.recent_history(10)

    assert len(window) == 10
    assert window[0].content == "message 2"
    assert session.recent_history(0) == []
