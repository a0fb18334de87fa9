"""Tests for the Shopify client and the local fallback."""

from __future__ import annotations

import httpx
import pytest

from gwen.catalog.models import SearchCriteria
from gwen.catalog.sources import (
    CatalogService,
    CatalogUnavailableError,
    LocalCatalog,
    ShopifyCatalogClient,
)
from gwen.knowledge.store import KnowledgeStore

FIRST_PAGE = "https://shop.example/admin/api/2024-01/products.json?limit=250"
SECOND_PAGE = "https://shop.example/admin/api/2024-01/products.json?page_info=abc"


def _shopify_product(title: str, handle: str, variants: list[dict]) -> dict:
    return {
        "title": title,
        "handle": handle,
        "body_html": "<p>Solid teak frame</p>",
        "images": [{"src": f"https://cdn.example/{handle}.jpg"}],
        "variants": variants,
    }


def _client(handler) -> ShopifyCatalogClient:
    return ShopifyCatalogClient(
        products_url=FIRST_PAGE,
        access_token="token",
        storefront_product_url="https://mint-outdoor.com/products",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.anyio
async def test_client_follows_pagination_and_expands_variants() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        assert request.headers["X-Shopify-Access-Token"] == "token"
        if str(request.url) == FIRST_PAGE:
            return httpx.Response(
                200,
                json={
                    "products": [
                        _shopify_product(
                            "Luna 4 Seater Teak Bench",
                            "luna-bench",
                            [
                                {"sku": "LUNA-4", "price": "499.00", "inventory_quantity": 3},
                                {"sku": "LUNA-4-GREY", "price": "529.00", "inventory_quantity": 1},
                                {"sku": "", "price": "1.00"},
                            ],
                        )
                    ]
                },
                headers={"Link": f'<{SECOND_PAGE}>; rel="next"'},
            )
        return httpx.Response(
            200,
            json={
                "products": [
                    _shopify_product(
                        "Sol Parasol", "sol-parasol", [{"sku": "SOL-1", "price": "99.00"}]
                    )
                ]
            },
        )

    client = _client(handler)
    try:
        products = await client.fetch_products()
    finally:
        await client.aclose()

    assert requested == [FIRST_PAGE, SECOND_PAGE]
    assert [product.sku for product in products] == ["LUNA-4", "LUNA-4-GREY", "SOL-1"]
    luna, grey, sol = products
    assert luna.primary is True and grey.primary is False
    assert luna.url == "https://mint-outdoor.com/products/luna-bench"
    assert luna.description == "Solid teak frame"
    assert luna.seat_count == 4
    assert luna.source == "live"
    assert sol.seat_count == 0
    assert sol.stock_quantity == 0


@pytest.mark.anyio
async def test_client_raises_on_http_errors() -> None:
    client = _client(lambda request: httpx.Response(503))
    try:
        with pytest.raises(CatalogUnavailableError):
            await client.fetch_products()
    finally:
        await client.aclose()


class _BrokenLiveCatalog:
    name = "live"

    async def fetch_products(self):
        raise CatalogUnavailableError("Shopify responded with HTTP 500")


@pytest.mark.anyio
async def test_service_falls_back_to_local_catalog(knowledge) -> None:
    service = CatalogService(live=_BrokenLiveCatalog(), fallback=LocalCatalog(knowledge))

    results = await service.search(SearchCriteria(sku="PAR-3M"))

    assert service.mode == "live"
    assert [product.sku for product in results] == ["PAR-3M"]
    assert results[0].source == "local"


@pytest.mark.anyio
async def test_secondary_variants_resolve_by_sku_only() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "products": [
                    _shopify_product(
                        "Luna Teak Bench",
                        "luna-bench",
                        [
                            {"sku": "LUNA-4", "price": "499.00", "inventory_quantity": 3},
                            {"sku": "LUNA-4-GREY", "price": "529.00", "inventory_quantity": 2},
                        ],
                    )
                ]
            },
        )

    client = _client(handler)
    service = CatalogService(live=client, fallback=LocalCatalog(KnowledgeStore()))
    try:
        by_name = await service.search(SearchCriteria(product_name="luna"))
        by_sku = await service.find_by_sku("LUNA-4-GREY")
    finally:
        await service.aclose()

    assert [product.sku for product in by_name] == ["LUNA-4"]
    assert by_sku is not None and by_sku.price == 529
