"""Deterministic filter and ranking pipeline over a list of products."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

from .models import Product, SearchCriteria, StockStatus

_WORD = re.compile(r"[a-z0-9]+")
_FUZZY_MIN_WORD_LENGTH = 3
_FUZZY_MATCH_RATIO = 0.6

_PREFERENCE_FIELDS = ("maintenance_level", "assembly_difficulty", "weight_class")


@dataclass(frozen=True)
class CategoryMatch:
    """Taxonomy category detected from free text."""

    category: str
    category_type: str | None
    search_terms: tuple[str, ...]


def detect_category(text: str, taxonomy: Mapping[str, Any]) -> CategoryMatch | None:
    """Return the first taxonomy category whose synonyms appear in ``text``."""

    lowered = text.lower()
    categories: Mapping[str, Any] = taxonomy.get("product_categories") or {}
    for key, data in categories.items():
        synonyms = data.get("synonyms") or []
        if any(str(synonym).lower() in lowered for synonym in synonyms):
            terms = tuple(str(term).lower() for term in data.get("search_terms") or [])
            return CategoryMatch(
                category=key, category_type=data.get("category_type"), search_terms=terms
            )
    return None


def _fuzzy_match(query: str, product: Product) -> bool:
    """Accept a product when enough significant query words overlap its text."""

    query_words = [word for word in query.split() if len(word) >= _FUZZY_MIN_WORD_LENGTH]
    if not query_words:
        return False
    product_words = _WORD.findall(product.search_text)
    matched = sum(
        1
        for query_word in query_words
        if any(
            query_word in product_word or product_word in query_word
            for product_word in product_words
        )
    )
    return matched >= math.ceil(len(query_words) * _FUZZY_MATCH_RATIO)


def _filter_by_name(
    products: Sequence[Product], product_name: str, taxonomy: Mapping[str, Any]
) -> List[Product]:
    category = detect_category(product_name, taxonomy)
    if category is not None:
        return [
            product
            for product in products
            if any(term in product.search_text for term in category.search_terms)
        ]

    query = product_name.lower().strip()
    literal = [
        product
        for product in products
        if query in product.search_text or query in product.sku.lower()
    ]
    if literal:
        return literal
    return [product for product in products if _fuzzy_match(query, product)]


def _is_dining(text: str) -> bool:
    return "dining" in text or "table" in text or ("chair" in text and "armchair" not in text)


def _is_lounge(text: str) -> bool:
    return (
        any(term in text for term in ("sofa", "lounge", "seating", "armchair", "corner"))
        or ("set" in text and "dining" not in text)
    )


_FURNITURE_TYPE_FILTERS: Dict[str, Callable[[str], bool]] = {
    "dining": _is_dining,
    "lounge": _is_lounge,
}


def _filter_by_preferences(
    products: Sequence[Product],
    criteria: SearchCriteria,
    space_config: Sequence[Mapping[str, Any]],
) -> List[Product]:
    """Apply maintenance/assembly/weight preferences where data exists.

    Products without a matching space configuration record, or whose record
    lacks the attribute, are kept.
    """

    wanted = {
        name: str(getattr(criteria, name)).lower()
        for name in _PREFERENCE_FIELDS
        if getattr(criteria, name)
    }
    if not wanted:
        return list(products)

    records = {str(record.get("sku")): record for record in space_config}
    kept: List[Product] = []
    for product in products:
        record = records.get(product.sku)
        if record is None:
            kept.append(product)
            continue
        if all(
            record.get(name) is None or str(record.get(name)).lower() == value
            for name, value in wanted.items()
        ):
            kept.append(product)
    return kept


def attach_stock(product: Product) -> Product:
    """Return a copy of ``product`` with its stock status resolved."""

    if product.stock_quantity is None:
        stock = StockStatus.unknown()
    else:
        stock = StockStatus.from_quantity(product.stock_quantity)
    return product.model_copy(update={"stock": stock})


def is_sellable(product: Product) -> bool:
    """Positive stock, positive price and not flagged unavailable."""

    if product.stock is None or not product.stock.in_stock:
        return False
    if product.price <= 0:
        return False
    return product.available is not False


def find_by_sku(products: Iterable[Product], sku: str) -> Product | None:
    """Return the exact (case-insensitive) SKU match, if any."""

    wanted = sku.strip().lower()
    for product in products:
        if product.sku.lower() == wanted:
            return attach_stock(product)
    return None


def run_search(
    products: Sequence[Product],
    criteria: SearchCriteria,
    taxonomy: Mapping[str, Any] | None = None,
    space_config: Sequence[Mapping[str, Any]] = (),
) -> List[Product]:
    """Filter, rank and truncate ``products`` according to ``criteria``."""

    if criteria.sku:
        match = find_by_sku(products, criteria.sku)
        return [match] if match is not None else []

    candidates = [product for product in products if product.primary]

    if criteria.product_name:
        candidates = _filter_by_name(candidates, criteria.product_name, taxonomy or {})

    if criteria.material:
        material = criteria.material.lower()
        candidates = [product for product in candidates if material in product.search_text]

    if criteria.furniture_type:
        type_filter = _FURNITURE_TYPE_FILTERS[criteria.furniture_type]
        candidates = [product for product in candidates if type_filter(product.search_text)]

    candidates = _filter_by_preferences(candidates, criteria, space_config)

    requested_seats = criteria.seat_count
    if requested_seats:
        candidates = [
            product
            for product in candidates
            if product.seat_count is not None and product.seat_count >= requested_seats
        ]

    sellable = [product for product in map(attach_stock, candidates) if is_sellable(product)]

    if requested_seats:
        sellable.sort(
            key=lambda product: (product.seat_count != requested_seats, product.price)
        )
    else:
        sellable.sort(key=lambda product: product.price)

    return sellable[: criteria.max_results]


__all__ = [
    "CategoryMatch",
    "attach_stock",
    "detect_category",
    "find_by_sku",
    "is_sellable",
    "run_search",
]
