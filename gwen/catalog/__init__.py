"""Product catalog search over the live Shopify listing with a local fallback."""

from __future__ import annotations

from .models import Product, SearchCriteria, StockStatus
from .search import run_search
from .sources import (
    CatalogService,
    CatalogUnavailableError,
    LocalCatalog,
    ShopifyCatalogClient,
    build_catalog_service,
    get_catalog_service,
)

__all__ = [
    "CatalogService",
    "CatalogUnavailableError",
    "LocalCatalog",
    "Product",
    "SearchCriteria",
    "ShopifyCatalogClient",
    "StockStatus",
    "build_catalog_service",
    "get_catalog_service",
    "run_search",
]
