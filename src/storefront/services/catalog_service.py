"""Catalog service — categories and products, with Redis read-through.

Learn: Reads check the cache first and fill it on a miss. A Redis
outage on the fill or on invalidation is logged and skipped: the
database stays the source of truth, so catalog reads keep working
with the cache down.
"""

import math
import uuid
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.catalog import CatalogCache
from storefront.db.models import Category, Product
from storefront.errors import Conflict, NotFound, StoreUnavailable
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryRead,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)

logger = structlog.get_logger()


class CatalogService:
    def __init__(self, db: AsyncSession, cache: CatalogCache):
        self.db = db
        self.cache = cache

    # ─── Categories ─────────────────────────────────────

    async def list_categories(self) -> list[dict]:
        cached = await self.cache.get_cached_categories()
        if cached is not None:
            return cached

        result = await self.db.execute(
            select(Category)
            .where(Category.is_active.is_(True))
            .order_by(Category.sort_order, Category.name)
        )
        categories = [
            CategoryRead.model_validate(c).model_dump(mode="json")
            for c in result.scalars().all()
        ]
        try:
            await self.cache.cache_categories(categories)
        except StoreUnavailable:
            logger.warning("storefront.catalog.cache_fill_failed", key="categories:all")
        return categories

    async def create_category(self, body: CategoryCreate) -> Category:
        existing = await self.db.execute(select(Category).where(Category.slug == body.slug))
        if existing.scalars().first():
            raise Conflict("Category slug already exists")
        category = Category(**body.model_dump())
        self.db.add(category)
        await self.db.flush()
        await self._invalidate_categories()
        return category

    async def _invalidate_categories(self) -> None:
        try:
            await self.cache.delete_cached_categories()
        except StoreUnavailable:
            logger.warning("storefront.catalog.invalidate_failed", key="categories:all")

    # ─── Products ───────────────────────────────────────

    async def list_products(
        self,
        page: int = 1,
        limit: int = 10,
        category_id: Optional[uuid.UUID] = None,
        status: Optional[str] = "active",
    ) -> dict:
        """Paginated product listing, newest first. status=None lists all."""
        q = select(Product)
        count_q = select(func.count()).select_from(Product)
        if category_id:
            q = q.where(Product.category_id == category_id)
            count_q = count_q.where(Product.category_id == category_id)
        if status:
            q = q.where(Product.status == status)
            count_q = count_q.where(Product.status == status)

        total = (await self.db.execute(count_q)).scalar_one()
        result = await self.db.execute(
            q.order_by(Product.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "items": list(result.scalars().all()),
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        }

    async def get_product(self, product_id: uuid.UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    async def get_active_product(self, product_id: uuid.UUID) -> dict:
        """Shopper-facing product lookup through the product:<id> cache."""
        cached = await self.cache.get_cached_product(str(product_id))
        if cached is not None:
            return cached

        product = await self.db.get(Product, product_id)
        if not product or product.status != "active":
            raise NotFound("Product not found")
        data = ProductRead.model_validate(product).model_dump(mode="json")
        try:
            await self.cache.cache_product(str(product_id), data)
        except StoreUnavailable:
            logger.warning("storefront.catalog.cache_fill_failed", product_id=str(product_id))
        return data

    async def create_product(self, body: ProductCreate) -> Product:
        existing = await self.db.execute(select(Product).where(Product.sku == body.sku))
        if existing.scalars().first():
            raise Conflict("SKU already exists")
        if not await self.db.get(Category, body.category_id):
            raise NotFound("Category not found")

        fields = body.model_dump()
        if not body.track_quantity:
            fields["quantity"] = 0
        product = Product(**fields)
        self.db.add(product)
        await self.db.flush()
        logger.info("storefront.catalog.product_created", product_id=str(product.id), sku=product.sku)
        return product

    async def update_product(self, product_id: uuid.UUID, body: ProductUpdate) -> Product:
        product = await self.get_product(product_id)
        changes = body.model_dump(exclude_unset=True)
        if "category_id" in changes and not await self.db.get(Category, changes["category_id"]):
            raise NotFound("Category not found")
        for field, value in changes.items():
            setattr(product, field, value)
        await self.db.flush()
        await self._invalidate_product(product_id)
        return product

    async def delete_product(self, product_id: uuid.UUID) -> None:
        product = await self.get_product(product_id)
        await self.db.delete(product)
        await self.db.flush()
        await self._invalidate_product(product_id)

    async def _invalidate_product(self, product_id: uuid.UUID) -> None:
        try:
            await self.cache.delete_cached_product(str(product_id))
        except StoreUnavailable:
            logger.warning("storefront.catalog.invalidate_failed", product_id=str(product_id))
