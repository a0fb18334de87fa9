"""Customer persona scoring and persona-aware clarifying questions."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Sequence

from .state import HistoryEntry, Persona

QuestionType = Literal["material", "furniture_type", "seat_count"]


@dataclass(frozen=True)
class PersonaRule:
    persona: Persona
    keywords: tuple[str, ...]


# Declaration order breaks ties.
PERSONA_RULES: Sequence[PersonaRule] = (
    PersonaRule(
        Persona.ENTERTAINER,
        ("hosting", "guests", "entertaining", "dinner parties", "gatherings", "impress",
         "elegant", "sophisticated"),
    ),
    PersonaRule(
        Persona.FAMILY,
        ("family", "kids", "children", "practical", "durable", "easy to clean", "safe",
         "everyday use"),
    ),
    PersonaRule(
        Persona.STYLE_CONSCIOUS,
        ("design", "aesthetic", "modern", "contemporary", "style", "look", "appearance",
         "beautiful"),
    ),
    PersonaRule(
        Persona.BUDGET_CONSCIOUS,
        ("budget", "price", "cost", "affordable", "value", "deal", "cheap", "expensive"),
    ),
)


def classify_persona(history: Iterable[HistoryEntry]) -> Persona:
    """Score every persona over the whole history; zero everywhere means default."""

    text = " ".join(entry.content for entry in history).lower()
    best = Persona.DEFAULT
    best_score = 0
    for rule in PERSONA_RULES:
        score = sum(1 for keyword in rule.keywords if keyword in text)
        if score > best_score:
            best, best_score = rule.persona, score
    return best


QUESTION_VARIATIONS: Dict[str, Dict[Persona, List[str]]] = {
    "material": {
        Persona.DEFAULT: [
            "What material appeals to you most - teak, aluminium, or rattan?",
            "Which material would work best for your space - teak, aluminium, or rattan?",
            "Are you drawn to any particular material like teak, aluminium, or rattan?",
            "What type of material are you considering - teak, aluminium, or rattan?",
        ],
        Persona.ENTERTAINER: [
            "For hosting guests, which material creates the impression you want - elegant teak, modern aluminium, or classic rattan?",
            "When entertaining, what material fits your style - sophisticated teak, sleek aluminium, or welcoming rattan?",
        ],
        Persona.FAMILY: [
            "With family use in mind, which low-maintenance material suits you - durable teak, easy-clean aluminium, or comfortable rattan?",
            "For family life, which practical material works best - weather-resistant teak, rust-proof aluminium, or cozy rattan?",
        ],
    },
    "furniture_type": {
        Persona.DEFAULT: [
            "Are you looking for dining furniture or lounge furniture?",
            "Would you prefer dining sets or lounge seating?",
            "Are you thinking dining furniture for meals or lounge furniture for relaxing?",
        ],
        Persona.ENTERTAINER: [
            "Are you planning more formal dining experiences or casual lounge gatherings?",
            "Would you prioritize impressive dining sets or comfortable lounge areas for guests?",
        ],
    },
    "seat_count": {
        Persona.DEFAULT: [
            "How many people do you typically need to seat?",
            "What's the seating capacity you're looking for?",
            "How many people would you like to accommodate?",
        ],
        Persona.ENTERTAINER: [
            "What's the largest group you typically entertain?",
            "How many guests do you usually host at once?",
        ],
        Persona.FAMILY: [
            "How many family members need seating?",
            "What's your family size for planning seating?",
        ],
    },
}


def persona_question(
    question_type: QuestionType,
    persona: Persona = Persona.DEFAULT,
    used: Sequence[str] = (),
    rng: random.Random | None = None,
) -> str:
    """Pick an unused question for the persona, falling back to the default wording."""

    variations = QUESTION_VARIATIONS[question_type]
    defaults = variations[Persona.DEFAULT]
    candidates = [*variations.get(persona, []), *defaults]
    unused = [question for question in candidates if question not in used]
    chooser = rng or random
    return chooser.choice(unused or candidates)


__all__ = [
    "PERSONA_RULES",
    "PersonaRule",
    "QUESTION_VARIATIONS",
    "QuestionType",
    "classify_persona",
    "persona_question",
]
