"""Tests for the per-session agent instructions and quick replies."""

from __future__ import annotations

from gwen.agent.prompts import SYSTEM_PROMPT, build_session_instructions
from gwen.conversation.state import ConversationMode, Persona
from gwen.conversation.suggestions import generate_suggestions


def test_system_prompt_carries_the_product_card_template() -> None:
    assert "Price: £{price}" in SYSTEM_PROMPT
    assert "[View Product]({website_url})" in SYSTEM_PROMPT
    assert "NEVER use emojis" in SYSTEM_PROMPT


def test_session_instructions_reflect_persona_and_signals(make_ctx, session) -> None:
    session.persona = Persona.BUDGET_CONSCIOUS
    session.education.track("warranty")

    text = build_session_instructions(make_ctx(buying_interest=True, escalation=True))

    assert "Customer persona: budget_conscious." in text
    assert "Topics already explained (1/5): warranty." in text
    assert "offer_package_deal" in text
    assert "marketing_handoff" in text


def test_session_instructions_without_signals(make_ctx) -> None:
    text = build_session_instructions(make_ctx())

    assert "none yet" in text
    assert "offer_package_deal" not in text


def test_suggestions_follow_the_message_topic() -> None:
    assert generate_suggestions("teak please", ConversationMode.SALES)[0] == "Teak maintenance guide"
    assert generate_suggestions("dining for 6", ConversationMode.SALES)[0] == "How many people to seat?"
    assert generate_suggestions("hello", ConversationMode.SALES) == [
        "Dining sets",
        "Lounge furniture",
        "Material guide",
    ]
    assert generate_suggestions("teak", ConversationMode.ORDER)[0] == "Track my order"
