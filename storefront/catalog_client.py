"""
Client for the remote product catalog, with a per-query result cache.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from storefront.config import Config
from storefront.exceptions import CatalogError
from storefront.models import Product, ProductPage

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


def build_query(
    page: int = 1,
    limit: Optional[int] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> Dict[str, str]:
    """Query parameters for one catalog page; the "All" category is omitted"""
    params = {"page": str(page), "limit": str(limit or Config.CATALOG_PAGE_SIZE)}
    if category and category != ALL_CATEGORIES:
        params["category"] = category
    if search:
        params["name"] = search
    return params


def parse_page(body: dict) -> ProductPage:
    """Parse a catalog response, skipping records without a usable id"""
    products: List[Product] = []
    for raw in body.get("data") or []:
        try:
            products.append(Product.model_validate(raw))
        except PydanticValidationError as e:
            logger.warning(f"Skipping unparseable product: {e.error_count()} errors")
    meta = body.get("meta") or {}
    return ProductPage(data=products, has_next_page=bool(meta.get("hasNextPage", False)))


class CatalogClient:
    """Fetches product pages from the catalog API"""

    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url or Config.CATALOG_BASE_URL
        self.transport = transport

    async def fetch_products(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ProductPage:
        params = build_query(page, limit, category, search)
        try:
            async with httpx.AsyncClient(timeout=Config.HTTP_TIMEOUT_SECONDS, transport=self.transport) as client:
                response = await client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            raise CatalogError(f"Failed to fetch products: {e}")

        if not response.is_success:
            raise CatalogError("Failed to fetch products", status_code=response.status_code)

        try:
            return parse_page(response.json())
        except ValueError as e:
            raise CatalogError(f"Failed to fetch products: {e}")


@dataclass
class CachedResults:
    products: List[Product] = field(default_factory=list)
    has_next_page: bool = True
    next_page: int = 1


class ProductCache:
    """Accumulated results per search/category combination"""

    def __init__(self):
        self._entries: Dict[str, CachedResults] = {}

    @staticmethod
    def key(search: Optional[str], category: Optional[str]) -> str:
        return f"{search or ''}-{category or ALL_CATEGORIES}"

    def get(self, search: Optional[str], category: Optional[str]) -> Optional[CachedResults]:
        return self._entries.get(self.key(search, category))

    def set(self, search: Optional[str], category: Optional[str], results: CachedResults) -> None:
        self._entries[self.key(search, category)] = results

    def clear(self) -> None:
        self._entries.clear()


class CatalogBrowser:
    """
    Paginated product listing for one search/category at a time.

    ``load_first`` starts over (or reuses what was already loaded for the
    same query); ``load_more`` appends the next page.
    """

    def __init__(self, client: CatalogClient, cache: Optional[ProductCache] = None, page_size: Optional[int] = None):
        self.client = client
        self.cache = cache or ProductCache()
        self.page_size = page_size or Config.CATALOG_PAGE_SIZE

    async def load_first(self, category: str = ALL_CATEGORIES, search: str = "") -> CachedResults:
        cached = self.cache.get(search, category)
        if cached is not None:
            return cached

        page = await self.client.fetch_products(1, self.page_size, category, search)
        results = CachedResults(products=list(page.data), has_next_page=page.has_next_page, next_page=2)
        self.cache.set(search, category, results)
        return results

    async def load_more(self, category: str = ALL_CATEGORIES, search: str = "") -> CachedResults:
        results = self.cache.get(search, category)
        if results is None:
            return await self.load_first(category, search)
        if not results.has_next_page:
            return results

        page = await self.client.fetch_products(results.next_page, self.page_size, category, search)
        results.products.extend(page.data)
        results.has_next_page = page.has_next_page
        results.next_page += 1
        return results
