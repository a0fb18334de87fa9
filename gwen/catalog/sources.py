"""Catalog sources (live Shopify listing and local fallback) and the search service."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, List, Mapping, Protocol, Sequence

import httpx
import logfire

from ..config import settings
from ..knowledge.store import KnowledgeStore, get_knowledge_store
from .models import Product, SearchCriteria
from .normalize import normalize_local_product, normalize_shopify_product
from .search import attach_stock, is_sellable, run_search

logger = logging.getLogger(__name__)


class CatalogUnavailableError(RuntimeError):
    """Raised when the live catalog cannot be queried successfully."""


class CatalogSource(Protocol):
    """Anything able to return the full current product list."""

    name: str

    async def fetch_products(self) -> List[Product]:
        ...


class LocalCatalog:
    """Products from ``product_database.json`` with stock from the inventory table."""

    name = "local"

    def __init__(self, knowledge: KnowledgeStore) -> None:
        self._knowledge = knowledge

    async def fetch_products(self) -> List[Product]:
        products: List[Product] = []
        for row in self._knowledge.products:
            sku = str(row.get("sku") or "").strip()
            if not sku:
                continue
            products.append(
                normalize_local_product(row, self._knowledge.inventory_for(sku))
            )
        return products


class ShopifyCatalogClient:
    """Reads the Shopify Admin REST product listing, following page links."""

    name = "live"

    def __init__(
        self,
        *,
        products_url: str,
        access_token: str,
        storefront_product_url: str,
        max_pages: int = 10,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._products_url = products_url
        self._storefront_product_url = storefront_product_url
        self._max_pages = max_pages
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        }

    async def _fetch_page(self, url: str) -> httpx.Response:
        try:
            response = await self._client.get(url, headers=self._headers)
        except httpx.HTTPError as exc:
            raise CatalogUnavailableError(f"Shopify request failed: {exc}") from exc
        if response.status_code >= 400:
            raise CatalogUnavailableError(
                f"Shopify responded with HTTP {response.status_code}"
            )
        return response

    async def fetch_products(self) -> List[Product]:
        products: List[Product] = []
        url: str | None = self._products_url
        pages = 0
        while url and pages < self._max_pages:
            response = await self._fetch_page(url)
            try:
                payload: Mapping[str, Any] = response.json()
            except ValueError as exc:
                raise CatalogUnavailableError("Shopify returned invalid JSON") from exc

            for raw in payload.get("products") or []:
                products.extend(
                    normalize_shopify_product(raw, self._storefront_product_url)
                )
            pages += 1
            url = response.links.get("next", {}).get("url")
        return products

    async def aclose(self) -> None:
        await self._client.aclose()


class CatalogService:
    """Runs the search pipeline against the live catalog, falling back locally."""

    def __init__(
        self,
        *,
        fallback: CatalogSource,
        live: CatalogSource | None = None,
        taxonomy: Mapping[str, Any] | None = None,
        space_config: Sequence[Mapping[str, Any]] = (),
    ) -> None:
        self._live = live
        self._fallback = fallback
        self._taxonomy = taxonomy or {}
        self._space_config = space_config

    @property
    def mode(self) -> str:
        """Name of the preferred source."""

        return self._live.name if self._live is not None else self._fallback.name

    async def _load(self) -> List[Product]:
        """Fetch the full product list, re-fetching on every call."""

        if self._live is not None:
            try:
                return await self._live.fetch_products()
            except CatalogUnavailableError as exc:
                logger.warning("Live catalog unavailable, using local fallback: %s", exc)
                logfire.warning("catalog.fallback", reason=str(exc))
        return await self._fallback.fetch_products()

    async def search(self, criteria: SearchCriteria) -> List[Product]:
        """Return at most ``criteria.max_results`` products matching ``criteria``."""

        with logfire.span(
            "catalog.search", criteria=criteria.model_dump(exclude_none=True)
        ):
            products = await self._load()
            results = run_search(products, criteria, self._taxonomy, self._space_config)
            logfire.info(
                "catalog.search_result",
                count=len(results),
                skus=[product.sku for product in results],
            )
            return results

    async def find_by_sku(self, sku: str) -> Product | None:
        """Resolve a single product by exact SKU."""

        results = await self.search(SearchCriteria(sku=sku, max_results=1))
        return results[0] if results else None

    async def sellable_products(self) -> List[Product]:
        """Return every primary product that is currently sellable."""

        products = await self._load()
        return [
            product
            for product in map(attach_stock, products)
            if product.primary and is_sellable(product)
        ]

    async def aclose(self) -> None:
        close = getattr(self._live, "aclose", None)
        if close is not None:
            await close()


def build_catalog_service(knowledge: KnowledgeStore) -> CatalogService:
    """Wire the configured sources into a catalog service."""

    live: CatalogSource | None = None
    if settings.live_catalog_enabled:
        live = ShopifyCatalogClient(
            products_url=settings.shopify_products_url,
            access_token=settings.shopify_access_token or "",
            storefront_product_url=settings.storefront_product_url,
            max_pages=settings.shopify_max_pages,
            timeout=settings.catalog_timeout_seconds,
        )
    return CatalogService(
        live=live,
        fallback=LocalCatalog(knowledge),
        taxonomy=knowledge.taxonomy,
        space_config=knowledge.space_config,
    )


@lru_cache(maxsize=1)
def get_catalog_service() -> CatalogService:
    """Return the process-wide catalog service."""

    return build_catalog_service(get_knowledge_store())


__all__ = [
    "CatalogService",
    "CatalogSource",
    "CatalogUnavailableError",
    "LocalCatalog",
    "ShopifyCatalogClient",
    "build_catalog_service",
    "get_catalog_service",
]
