"""Tests for the catalog client, lenient product parsing and paginated browsing."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from storefront.catalog_client import CatalogBrowser, CatalogClient, ProductCache, build_query, parse_page
from storefront.exceptions import CatalogError
from storefront.models import Product


class TestBuildQuery:

    def test_defaults(self):
        assert build_query() == {"page": "1", "limit": "12"}

    def test_all_category_is_omitted(self):
        assert "category" not in build_query(category="All")

    def test_category_and_search(self):
        assert build_query(3, 6, "Bags", "tote") == {"page": "3", "limit": "6", "category": "Bags", "name": "tote"}


class TestProductParsing:

    def test_images_as_json_string(self):
        product = Product.model_validate({"id": "1", "images": '["a.jpg", "b.jpg"]'})
        assert product.images == ["a.jpg", "b.jpg"]
        assert product.primary_image == "a.jpg"

    def test_single_image_string(self):
        assert Product.model_validate({"id": "1", "images": "a.jpg"}).images == ["a.jpg"]

    def test_bad_values_fall_back_to_defaults(self):
        product = Product.model_validate({"id": 5, "price": "abc", "images": None, "quantity": "many"})
        assert product.id == "5"
        assert product.price == Decimal("0")
        assert product.images == []
        assert product.quantity_in_stock == 0
        assert product.is_out_of_stock

    def test_to_cart_item(self):
        item = Product.model_validate({"id": "1", "name": "Tote", "price": 1000, "images": ["a.jpg"]}).to_cart_item()
        assert (item.id, item.name, item.unit_price, item.image) == ("1", "Tote", Decimal("1000"), "a.jpg")

    def test_parse_page_skips_records_without_id(self):
        page = parse_page({"data": [{"name": "no id"}, {"id": "2", "name": "ok"}], "meta": {"hasNextPage": False}})
        assert [p.id for p in page.data] == ["2"]
        assert page.has_next_page is False


def _catalog(pages: dict[int, dict], calls: list) -> CatalogClient:
    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        calls.append(dict(request.url.params))
        return httpx.Response(200, json=pages[page])

    return CatalogClient(base_url="https://catalog.test/products", transport=httpx.MockTransport(handler))


class TestCatalogClient:

    def test_fetch_products(self):
        calls = []
        catalog = _catalog({1: {"data": [{"id": "1", "name": "Tote"}], "meta": {"hasNextPage": True}}}, calls)
        page = asyncio.run(catalog.fetch_products(search="tote"))
        assert page.data[0].name == "Tote"
        assert page.has_next_page is True
        assert calls == [{"page": "1", "limit": "12", "name": "tote"}]

    def test_error_status_raises(self):
        catalog = CatalogClient(
            base_url="https://catalog.test/products",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        with pytest.raises(CatalogError, match="Failed to fetch products") as exc_info:
            asyncio.run(catalog.fetch_products())
        assert exc_info.value.status_code == 500


class TestCatalogBrowser:

    PAGES = {
        1: {"data": [{"id": "1"}, {"id": "2"}], "meta": {"hasNextPage": True}},
        2: {"data": [{"id": "3"}], "meta": {"hasNextPage": False}},
    }

    def test_load_more_appends_pages(self):
        calls = []
        browser = CatalogBrowser(_catalog(self.PAGES, calls), page_size=2)

        async def scenario():
            await browser.load_first()
            return await browser.load_more()

        results = asyncio.run(scenario())
        assert [p.id for p in results.products] == ["1", "2", "3"]
        assert results.has_next_page is False
        assert [c["page"] for c in calls] == ["1", "2"]

    def test_load_more_stops_at_last_page(self):
        calls = []
        browser = CatalogBrowser(_catalog(self.PAGES, calls), page_size=2)

        async def scenario():
            await browser.load_first()
            await browser.load_more()
            return await browser.load_more()

        asyncio.run(scenario())
        assert len(calls) == 2

    def test_same_query_is_served_from_cache(self):
        calls = []
        cache = ProductCache()
        browser = CatalogBrowser(_catalog(self.PAGES, calls), cache=cache, page_size=2)

        async def scenario():
            await browser.load_first(category="All", search="")
            await browser.load_first(category="All", search="")

        asyncio.run(scenario())
        assert len(calls) == 1
        assert cache.get("", "All") is not None
