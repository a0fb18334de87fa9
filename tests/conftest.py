"""Shared fixtures built on the sample knowledge files in ``data/``."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import List

import pytest

from gwen.agent.dependencies import AgentDependencies
from gwen.catalog.sources import CatalogService, LocalCatalog
from gwen.conversation.state import Session
from gwen.handoff.email import HandoffNotification, MarketingHandoff
from gwen.knowledge.store import KnowledgeStore, load_knowledge

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(scope="session")
def knowledge() -> KnowledgeStore:
    return load_knowledge(DATA_DIR)


@pytest.fixture
def catalog(knowledge: KnowledgeStore) -> CatalogService:
    return CatalogService(
        fallback=LocalCatalog(knowledge),
        taxonomy=knowledge.taxonomy,
        space_config=knowledge.space_config,
    )


class RecordingSender:
    """Email sender stub that keeps every notification it is given."""

    def __init__(self) -> None:
        self.sent: List[HandoffNotification] = []

    async def send(self, notification: HandoffNotification) -> None:
        self.sent.append(notification)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def handoff(sender: RecordingSender) -> MarketingHandoff:
    return MarketingHandoff(sender=sender)


@pytest.fixture
def session() -> Session:
    return Session(session_id="test-session")


@pytest.fixture
def make_ctx(session, knowledge, catalog, handoff):
    """Return a factory for stand-ins of ``RunContext`` carrying real dependencies."""

    def _make(**overrides) -> SimpleNamespace:
        deps = AgentDependencies(
            session=session, knowledge=knowledge, catalog=catalog, handoff=handoff, **overrides
        )
        return SimpleNamespace(deps=deps)

    return _make
