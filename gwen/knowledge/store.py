"""Read-only reference datasets loaded once from the JSON knowledge directory."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from ..config import settings

logger = logging.getLogger(__name__)


# Attribute name -> (file name, empty value type).
DATASET_FILES: Dict[str, tuple[str, type]] = {
    "products": ("product_database.json", list),
    "inventory": ("Inventory_Data.json", list),
    "orders": ("Gwen_PO_Order_Report.json", list),
    "bundle_suggestions": ("bundle_suggestions.json", list),
    "bundle_items": ("bundle_items.json", list),
    "product_material_index": ("product_material_index.json", list),
    "product_families": ("product_families.json", dict),
    "space_config": ("space_config.json", list),
    "material_maintenance": ("material_maintenance.json", dict),
    "market_master": ("market_master.json", dict),
    "climate_master": ("climate_master.json", dict),
    "fabrics_master": ("fabrics_master.json", list),
    "wood_master": ("wood_master.json", list),
    "metals_master": ("metals_master.json", list),
    "synthetics_master": ("synthetics_master.json", list),
    "stone_composites_master": ("stone_composites_master.json", list),
    "taxonomy": ("taxonomy.json", dict),
    "product_faqs": ("product_faqs.json", list),
}

# Wrapper keys some exports use around the real record list.
_LIST_WRAPPER_KEYS = ("products", "inventory")


@dataclass(frozen=True)
class KnowledgeStore:
    """Process-wide collection of reference tables; never mutated after load."""

    products: List[Dict[str, Any]] = field(default_factory=list)
    inventory: List[Dict[str, Any]] = field(default_factory=list)
    orders: List[Dict[str, Any]] = field(default_factory=list)
    bundle_suggestions: List[Dict[str, Any]] = field(default_factory=list)
    bundle_items: List[Dict[str, Any]] = field(default_factory=list)
    product_material_index: List[Dict[str, Any]] = field(default_factory=list)
    product_families: Dict[str, Any] = field(default_factory=dict)
    space_config: List[Dict[str, Any]] = field(default_factory=list)
    material_maintenance: Dict[str, Any] = field(default_factory=dict)
    market_master: Dict[str, Any] = field(default_factory=dict)
    climate_master: Dict[str, Any] = field(default_factory=dict)
    fabrics_master: List[Dict[str, Any]] = field(default_factory=list)
    wood_master: List[Dict[str, Any]] = field(default_factory=list)
    metals_master: List[Dict[str, Any]] = field(default_factory=list)
    synthetics_master: List[Dict[str, Any]] = field(default_factory=list)
    stone_composites_master: List[Dict[str, Any]] = field(default_factory=list)
    taxonomy: Dict[str, Any] = field(default_factory=dict)
    product_faqs: List[Dict[str, Any]] = field(default_factory=list)

    def inventory_for(self, sku: str) -> Dict[str, Any] | None:
        """Return the inventory record for an SKU, if one was loaded."""

        for record in self.inventory:
            if str(record.get("sku", "")) == sku:
                return record
        return None

    def counts(self) -> Dict[str, int]:
        """Return the number of records held by each dataset."""

        return {item.name: len(getattr(self, item.name)) for item in fields(self)}


def _coerce_dataset(raw: Any, expected: type) -> Any:
    """Unwrap known container shapes and enforce the expected top-level type."""

    if isinstance(raw, dict):
        for key in _LIST_WRAPPER_KEYS:
            wrapped = raw.get(key)
            if isinstance(wrapped, list) and expected is list:
                return wrapped
    if isinstance(raw, expected):
        return raw
    raise ValueError(
        f"expected a JSON {expected.__name__}, found {type(raw).__name__}"
    )


def load_dataset(path: Path, expected: type) -> Any:
    """Load one JSON dataset, returning an empty value when it is unusable."""

    try:
        with path.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)
        data = _coerce_dataset(raw, expected)
    except FileNotFoundError:
        logger.warning("Knowledge file %s is missing; continuing without it", path.name)
        return expected()
    except (OSError, ValueError) as exc:
        logger.warning("Could not load knowledge file %s: %s", path.name, exc)
        return expected()

    logger.info("Loaded %s: %d records", path.name, len(data))
    return data


def load_knowledge(directory: Path) -> KnowledgeStore:
    """Read every known dataset from ``directory`` into a knowledge store."""

    loaded = {
        attribute: load_dataset(directory / filename, expected)
        for attribute, (filename, expected) in DATASET_FILES.items()
    }
    return KnowledgeStore(**loaded)


@lru_cache(maxsize=1)
def get_knowledge_store() -> KnowledgeStore:
    """Return the process-wide knowledge store loaded from the data directory."""

    return load_knowledge(settings.data_directory)


__all__ = [
    "DATASET_FILES",
    "KnowledgeStore",
    "get_knowledge_store",
    "load_dataset",
    "load_knowledge",
]
