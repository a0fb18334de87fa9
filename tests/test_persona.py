"""Tests for persona scoring and persona-aware questions."""

from __future__ import annotations

import random

from gwen.conversation.persona import QUESTION_VARIATIONS, classify_persona, persona_question
from gwen.conversation.state import HistoryEntry, Persona


def _history(*messages: str) -> list[HistoryEntry]:
    return [HistoryEntry(role="user", content=message) for message in messages]


def test_highest_scoring_persona_wins() -> None:
    history = _history("We host dinner parties for guests", "something elegant")

    assert classify_persona(history) is Persona.ENTERTAINER


def test_budget_keywords_select_budget_persona() -> None:
    history = _history("What's good value on a budget?")

    assert classify_persona(history) is Persona.BUDGET_CONSCIOUS


def test_family_keywords_outscore_a_single_style_keyword() -> None:
    history = _history("We need something durable", "the family and kids use it daily", "modern")

    assert classify_persona(history) is Persona.FAMILY


def test_ties_go_to_the_first_declared_persona() -> None:
    history = _history("something for the family with a modern feel")

    assert classify_persona(history) is Persona.FAMILY


def test_no_keywords_means_default() -> None:
    assert classify_persona(_history("hello there")) is Persona.DEFAULT
    assert classify_persona([]) is Persona.DEFAULT


def test_persona_question_skips_used_wording() -> None:
    defaults = QUESTION_VARIATIONS["material"][Persona.DEFAULT]

    question = persona_question(
        "material", Persona.FAMILY, used=defaults, rng=random.Random(1)
    )

    assert question in QUESTION_VARIATIONS["material"][Persona.FAMILY]


def test_persona_without_variations_uses_default_wording() -> None:
    question = persona_question("furniture_type", Persona.BUDGET_CONSCIOUS)

    assert question in QUESTION_VARIATIONS["furniture_type"][Persona.DEFAULT]
