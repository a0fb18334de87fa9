"""Reference datasets and the lookups built on top of them."""

from __future__ import annotations

from .expertise import (
    AvailabilityReport,
    KnowledgeAnswer,
    fabric_expertise,
    find_cover_family,
    find_faq_answer,
    material_expertise,
    product_dimensions,
    seasonal_advice,
    stock_status,
    warranty_breakdown,
)
from .store import KnowledgeStore, get_knowledge_store, load_knowledge

__all__ = [
    "AvailabilityReport",
    "KnowledgeAnswer",
    "KnowledgeStore",
    "fabric_expertise",
    "find_cover_family",
    "find_faq_answer",
    "get_knowledge_store",
    "load_knowledge",
    "material_expertise",
    "product_dimensions",
    "seasonal_advice",
    "stock_status",
    "warranty_breakdown",
]
