"""Conversation state, routing and persona detection."""

from __future__ import annotations

from .intent import IntentDecision, classify, detect_buying_interest, detect_escalation
from .persona import classify_persona, persona_question
from .state import (
    AwaitingBundleResponse,
    AwaitingContactDetails,
    AwaitingOrderVerification,
    ConversationMode,
    InMemorySessionStore,
    NormalState,
    Persona,
    Session,
    SessionStore,
    get_session_store,
)

__all__ = [
    "AwaitingBundleResponse",
    "AwaitingContactDetails",
    "AwaitingOrderVerification",
    "ConversationMode",
    "InMemorySessionStore",
    "IntentDecision",
    "NormalState",
    "Persona",
    "Session",
    "SessionStore",
    "classify",
    "classify_persona",
    "detect_buying_interest",
    "detect_escalation",
    "get_session_store",
    "persona_question",
]
