"""Session model, tagged pending-offer states and the in-memory session store."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Annotated, Callable, Dict, List, Literal, Protocol, Union

from cachetools import TTLCache
from pydantic import BaseModel, Field

from ..config import settings

EDUCATION_TOPICS = ("materials", "warranty", "maintenance", "dimensions", "assembly")
EDUCATED_THRESHOLD = 1


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class ConversationMode(str, Enum):
    """Which pipeline owns the conversation."""

    ORDER = "order"
    SALES = "sales"


class Persona(str, Enum):
    ENTERTAINER = "entertainer"
    FAMILY = "family"
    STYLE_CONSCIOUS = "style_conscious"
    BUDGET_CONSCIOUS = "budget_conscious"
    DEFAULT = "default"


class HistoryEntry(BaseModel):
    """Single utterance stored in a session's history."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class EducationProgress(BaseModel):
    """Topics the customer has been taught about during the conversation."""

    topics: List[str] = Field(default_factory=list)

    @property
    def educated(self) -> bool:
        return len(self.topics) >= EDUCATED_THRESHOLD

    def track(self, topic: str) -> bool:
        """Record ``topic`` and return whether the customer now counts as educated."""

        if topic in EDUCATION_TOPICS and topic not in self.topics:
            self.topics.append(topic)
        return self.educated


class NormalState(BaseModel):
    kind: Literal["normal"] = "normal"


class AwaitingBundleResponse(BaseModel):
    """A bundle offer was made and the next message is read as a yes/no reply."""

    kind: Literal["awaiting_bundle_response"] = "awaiting_bundle_response"
    sku: str
    category: str | None = None
    reprompted: bool = False


class AwaitingContactDetails(BaseModel):
    """Accessories were shown and the customer's email and postcode are expected."""

    kind: Literal["awaiting_contact_details"] = "awaiting_contact_details"
    sku: str


class AwaitingOrderVerification(BaseModel):
    """An order was found and the next message should carry surname and postcode."""

    kind: Literal["awaiting_order_verification"] = "awaiting_order_verification"
    order_id: str


PendingState = Annotated[
    Union[NormalState, AwaitingBundleResponse, AwaitingContactDetails, AwaitingOrderVerification],
    Field(discriminator="kind"),
]


class Session(BaseModel):
    """Per-conversation state held in memory between turns."""

    session_id: str
    history: List[HistoryEntry] = Field(default_factory=list)
    mode: ConversationMode | None = None
    verified: bool = False
    verified_order_id: str | None = None
    offered_bundle: bool = False
    pending: PendingState = Field(default_factory=NormalState)
    persona: Persona = Persona.DEFAULT
    education: EducationProgress = Field(default_factory=EducationProgress)
    last_activity: datetime = Field(default_factory=_utcnow)

    def add_message(self, role: Literal["user", "assistant"], content: str) -> HistoryEntry:
        """Append to the history and refresh the activity timestamp."""

        entry = HistoryEntry(role=role, content=content)
        self.history.append(entry)
        self.last_activity = entry.timestamp
        return entry

    def recent_history(self, window: int) -> List[HistoryEntry]:
        return self.history[-window:] if window > 0 else []

    def clear_pending(self) -> None:
        self.pending = NormalState()


class SessionStore(Protocol):
    """Storage interface for sessions; injected into the conversation service."""

    async def get(self, session_id: str) -> Session | None:
        ...

    async def put(self, session: Session) -> None:
        ...

    async def delete(self, session_id: str) -> None:
        ...

    async def sweep(self) -> int:
        ...

    def lock(self, session_id: str) -> asyncio.Lock:
        ...


class InMemorySessionStore:
    """Tracks sessions by id, evicting those idle for longer than ``idle_seconds``."""

    def __init__(
        self,
        *,
        idle_seconds: float,
        maxsize: int,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        # The TTL restarts whenever a session is written back after a turn.
        self._sessions: TTLCache[str, Session] = TTLCache(
            maxsize=maxsize, ttl=idle_seconds, timer=timer
        )
        self._locks: Dict[str, asyncio.Lock] = {}
        self._guard = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def lock(self, session_id: str) -> asyncio.Lock:
        """Return the lock that serialises turns of one session."""

        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def get(self, session_id: str) -> Session | None:
        async with self._guard:
            return self._sessions.get(session_id)

    async def put(self, session: Session) -> None:
        async with self._guard:
            self._sessions[session.session_id] = session

    async def delete(self, session_id: str) -> None:
        async with self._guard:
            self._sessions.pop(session_id, None)
            self._locks.pop(session_id, None)

    async def sweep(self) -> int:
        """Drop expired sessions and return how many were evicted."""

        async with self._guard:
            expired = self._sessions.expire()
            for session_id in [key for key in self._locks if key not in self._sessions]:
                if not self._locks[session_id].locked():
                    del self._locks[session_id]
            return len(expired)


@lru_cache(maxsize=1)
def get_session_store() -> InMemorySessionStore:
    """Return the process-wide session store."""

    return InMemorySessionStore(
        idle_seconds=settings.session_idle_seconds, maxsize=settings.session_max_count
    )


__all__ = [
    "AwaitingBundleResponse",
    "AwaitingContactDetails",
    "AwaitingOrderVerification",
    "ConversationMode",
    "EDUCATION_TOPICS",
    "EducationProgress",
    "HistoryEntry",
    "InMemorySessionStore",
    "NormalState",
    "PendingState",
    "Persona",
    "Session",
    "SessionStore",
    "get_session_store",
]
