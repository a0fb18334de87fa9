"""Tests for the knowledge store and the expertise lookups."""

from __future__ import annotations

import json

from gwen.knowledge.expertise import (
    fabric_expertise,
    find_cover_family,
    find_faq_answer,
    material_expertise,
    product_dimensions,
    seasonal_advice,
    stock_status,
    warranty_breakdown,
)
from gwen.knowledge.store import load_knowledge


def test_missing_and_malformed_files_load_as_empty(tmp_path) -> None:
    (tmp_path / "product_database.json").write_text(
        json.dumps({"products": [{"sku": "A-1"}]}), encoding="utf-8"
    )
    (tmp_path / "market_master.json").write_text("{not json", encoding="utf-8")

    knowledge = load_knowledge(tmp_path)

    assert knowledge.products == [{"sku": "A-1"}]
    assert knowledge.market_master == {}
    assert knowledge.orders == []
    assert knowledge.counts()["products"] == 1


def test_stock_status(knowledge) -> None:
    assert stock_status(knowledge, "HAV-DIN-8").stock_level == 12
    assert stock_status(knowledge, "REV-DIN-6").in_stock is False

    unknown = stock_status(knowledge, "NOPE")
    assert unknown.in_stock is True
    assert unknown.message == "Stock information not available for this product"


def test_full_warranty_breakdown_joins_material_masters(knowledge) -> None:
    answer = warranty_breakdown(knowledge, "HAV-DIN-8")

    assert answer.found is True
    assert answer.topics == ("warranty",)
    assert "MINT Outdoor 1-Year Guarantee" in answer.text
    assert "**Teak** (frame):" in answer.text
    assert "- 5 year warranty - structural integrity of the timber" in answer.text
    assert "- Extended: up to 5 years on individual materials" in answer.text


def test_material_specific_warranty_omits_company_guarantee(knowledge) -> None:
    answer = warranty_breakdown(knowledge, "REV-DIN-6", "material_specific")

    assert "1-Year Guarantee:**" not in answer.text
    assert "**PE Rattan** (weave):" in answer.text
    assert "**Tempered glass** (table top):" in answer.text


def test_unknown_product_warranty_falls_back_to_company_policy(knowledge) -> None:
    answer = warranty_breakdown(knowledge, "NOPE")

    assert answer.found is False
    assert "1-year structural guarantee" in answer.text


def test_material_expertise_sections(knowledge) -> None:
    answer = material_expertise(knowledge, "teak")

    assert "**Teak Maintenance:**" in answer.text
    assert "Cleaning: Wash with mild soapy water Use a soft brush along the grain" in answer.text
    assert "Pros: Naturally weatherproof, Very long lasting, Low upkeep" in answer.text
    assert "uk rain: Excellent; natural oils repel water" in answer.text
    assert answer.topics == ("materials", "maintenance")


def test_material_expertise_for_unknown_material(knowledge) -> None:
    answer = material_expertise(knowledge, "bamboo")

    assert answer.found is False
    assert answer.topics == ("materials",)


def test_fabric_and_seasonal_advice(knowledge) -> None:
    fabric = fabric_expertise(knowledge, "olefin")
    season = seasonal_advice(knowledge, "summer")

    assert fabric.text.startswith("**Olefin** (Premium):")
    assert "Warranty: 3 years - fading and seam failure" in fabric.text
    assert season.text.splitlines()[0] == "**Summer Recommendations:**"
    assert seasonal_advice(knowledge, "monsoon").found is False


def test_dimensions_by_sku_and_by_title(knowledge) -> None:
    by_sku = product_dimensions(knowledge, "HAV-DIN-8")
    by_title = product_dimensions(knowledge, "malai")

    assert "Dimensions: 220cm W x 100cm D x 75cm H" in by_sku.text
    assert "Assembly: required (moderate difficulty)" in by_sku.text
    assert by_sku.topics == ("dimensions", "assembly")
    assert by_title.found is True
    assert "Seat height: 40cm" in by_title.text
    assert by_title.topics == ("dimensions",)


def test_faq_lookup(knowledge) -> None:
    assert find_faq_answer(knowledge, "assembly").startswith("Most of our sets arrive")
    assert find_faq_answer(knowledge, "delivery take").startswith("In stock items")
    assert find_faq_answer(knowledge, "refund policy") is None


def test_cover_family_requires_an_explicit_cover(knowledge) -> None:
    assert find_cover_family(knowledge, "HAV-DIN-8") == ("havana", "COV-HAV")
    assert find_cover_family(knowledge, "MAL-LNG-5") is None
