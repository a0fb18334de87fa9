"""Dependency definitions for the sales assistant agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..catalog.sources import CatalogService
from ..conversation.state import Session
from ..handoff.email import MarketingHandoff
from ..knowledge.store import KnowledgeStore


@dataclass
class AgentDependencies:
    """Runtime dependencies passed to the agent on every run.

    Tools mutate ``session`` directly; the conversation service writes it back
    to the store once the turn is finished.
    """

    session: Session
    knowledge: KnowledgeStore
    catalog: CatalogService
    handoff: MarketingHandoff
    buying_interest: bool = False
    escalation: bool = False
    now: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


__all__ = ["AgentDependencies"]
