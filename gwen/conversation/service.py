"""Turn handler that routes each customer message and updates the session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, List

import logfire
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.usage import UsageLimits
from tenacity import AsyncRetrying, stop_after_attempt, wait_fixed

from ..agent.dependencies import AgentDependencies
from ..agent.factory import get_agent
from ..catalog.sources import CatalogService, get_catalog_service
from ..chatlog import ChatLogSink, get_chat_log
from ..config import settings
from ..handoff.email import MarketingHandoff, get_marketing_handoff
from ..knowledge.store import KnowledgeStore, get_knowledge_store
from .flows import handle_bundle_response, handle_contact_details
from .intent import classify, detect_buying_interest, detect_escalation
from .orders import OrderBook, handle_order_turn
from .persona import classify_persona
from .state import (
    AwaitingBundleResponse,
    AwaitingContactDetails,
    ConversationMode,
    HistoryEntry,
    Session,
    SessionStore,
    get_session_store,
)
from .suggestions import FLOW_SUGGESTIONS, generate_suggestions

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "I apologize, but I'm experiencing a technical issue. Please try again in a moment, "
    "or contact our team at support@mint-outdoor.com."
)


@dataclass
class ChatTurnResult:
    """Outcome of a single handled message."""

    response: str
    session_id: str
    mode: ConversationMode
    suggestions: List[str] = field(default_factory=list)
    handoff: str | None = None
    handoff_url: str | None = None


async def _run_agent_with_retry(agent: Any, **kwargs: Any) -> Any:
    """Execute the agent while retrying once after a short delay on failure."""

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(2), wait=wait_fixed(0.25), reraise=True
    ):
        with attempt:
            return await agent.run(**kwargs)


def to_model_messages(entries: List[HistoryEntry]) -> List[ModelMessage]:
    """Convert stored history into the message format the agent expects."""

    messages: List[ModelMessage] = []
    for entry in entries:
        if entry.role == "user":
            messages.append(ModelRequest(parts=[UserPromptPart(content=entry.content)]))
        else:
            messages.append(ModelResponse(parts=[TextPart(content=entry.content)]))
    return messages


class ConversationService:
    """Coordinates routing, scripted sub-flows and the sales agent for each turn."""

    def __init__(
        self,
        *,
        store: SessionStore,
        knowledge: KnowledgeStore,
        catalog: CatalogService,
        handoff: MarketingHandoff,
        chat_log: ChatLogSink,
        agent_factory: Callable[[], Any] = get_agent,
        history_window: int = 10,
        bundle_refund: int | None = None,
    ) -> None:
        self.store = store
        self.knowledge = knowledge
        self.catalog = catalog
        self.handoff = handoff
        self.chat_log = chat_log
        self._agent_factory = agent_factory
        self._history_window = history_window
        self._orders = OrderBook(knowledge.orders)
        self._bundle_refund = bundle_refund

    async def handle_turn(self, session_id: str, message: str) -> ChatTurnResult:
        """Handle one customer message; turns for the same session run one at a time."""

        async with self.store.lock(session_id):
            with logfire.span("chat turn", session_id=session_id):
                session = await self.store.get(session_id) or Session(session_id=session_id)
                session.add_message("user", message)

                result = await self._route(session, message)

                session.add_message("assistant", result.response)
                await self.store.put(session)

        await self.chat_log.append(session_id, "user", message)
        await self.chat_log.append(session_id, "assistant", result.response)
        return result

    async def _route(self, session: Session, message: str) -> ChatTurnResult:
        decision = classify(message, session)
        logfire.info(
            "routing decision",
            session_id=session.session_id,
            target=decision.target.value,
            reason=decision.reason,
        )

        if decision.target is ConversationMode.ORDER:
            session.mode = ConversationMode.ORDER
            reply = handle_order_turn(message, session, self._orders)
            return ChatTurnResult(
                response=reply.message,
                session_id=session.session_id,
                mode=ConversationMode.ORDER,
                suggestions=generate_suggestions(message, ConversationMode.ORDER),
                handoff=reply.handoff,
                handoff_url=reply.handoff_url,
            )

        session.mode = ConversationMode.SALES
        session.persona = classify_persona(session.history)

        flow_reply = None
        if isinstance(session.pending, AwaitingBundleResponse):
            flow_reply = await handle_bundle_response(
                message, session, self.knowledge, self.catalog, self._bundle_refund
            )
        elif isinstance(session.pending, AwaitingContactDetails):
            flow_reply = await handle_contact_details(
                message, session, self.handoff, self._bundle_refund
            )
        if flow_reply is not None:
            return ChatTurnResult(
                response=flow_reply.message,
                session_id=session.session_id,
                mode=ConversationMode.SALES,
                suggestions=list(FLOW_SUGGESTIONS),
            )

        response = await self._run_sales_agent(session, message)
        return ChatTurnResult(
            response=response,
            session_id=session.session_id,
            mode=ConversationMode.SALES,
            suggestions=generate_suggestions(message, ConversationMode.SALES),
        )

    async def _run_sales_agent(self, session: Session, message: str) -> str:
        prior = session.recent_history(self._history_window + 1)[:-1]
        deps = AgentDependencies(
            session=session,
            knowledge=self.knowledge,
            catalog=self.catalog,
            handoff=self.handoff,
            buying_interest=detect_buying_interest(message),
            escalation=detect_escalation(message),
        )
        try:
            agent = self._agent_factory()
            result = await _run_agent_with_retry(
                agent,
                user_prompt=message,
                deps=deps,
                message_history=to_model_messages(prior) or None,
                usage_limits=UsageLimits(request_limit=5, tool_calls_limit=8),
            )
        except Exception:
            logger.exception("Sales agent failed for session %s", session.session_id)
            return APOLOGY_MESSAGE
        return result.output.cleaned().message


@lru_cache(maxsize=1)
def get_conversation_service() -> ConversationService:
    """Return the process-wide conversation service."""

    return ConversationService(
        store=get_session_store(),
        knowledge=get_knowledge_store(),
        catalog=get_catalog_service(),
        handoff=get_marketing_handoff(),
        chat_log=get_chat_log(),
        history_window=settings.history_window,
        bundle_refund=settings.bundle_refund_amount,
    )


__all__ = [
    "APOLOGY_MESSAGE",
    "ChatTurnResult",
    "ConversationService",
    "get_conversation_service",
    "to_model_messages",
]
