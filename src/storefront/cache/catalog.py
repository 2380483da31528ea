"""Read-through caches for products and the category list."""

from typing import Any, Optional

from fastapi import Request

from storefront.cache.store import KeyValueStore

CATEGORIES_KEY = "categories:all"


def product_key(product_id: str) -> str:
    return f"product:{product_id}"


class CatalogCache:
    def __init__(
        self,
        store: KeyValueStore,
        product_ttl_seconds: int = 3600,
        category_ttl_seconds: int = 7200,
    ):
        self.store = store
        self.product_ttl_seconds = product_ttl_seconds
        self.category_ttl_seconds = category_ttl_seconds

    async def cache_product(self, product_id: str, product: dict) -> None:
        await self.store.set(product_key(product_id), product, self.product_ttl_seconds)

    async def get_cached_product(self, product_id: str) -> Optional[dict]:
        return await self.store.get(product_key(product_id))

    async def delete_cached_product(self, product_id: str) -> None:
        await self.store.delete(product_key(product_id))

    async def cache_categories(self, categories: list[Any]) -> None:
        await self.store.set(CATEGORIES_KEY, categories, self.category_ttl_seconds)

    async def get_cached_categories(self) -> Optional[list[Any]]:
        return await self.store.get(CATEGORIES_KEY)

    async def delete_cached_categories(self) -> None:
        await self.store.delete(CATEGORIES_KEY)


def get_catalog_cache(request: Request) -> CatalogCache:
    """FastAPI dependency — the app-wide catalog cache."""
    return request.app.state.catalog_cache
