"""Public catalog routes — categories and active products.

Learn: Shoppers only ever see status=active products. Single products
and the category list are served through Redis (product:<id>,
categories:all); the admin routes invalidate those keys on change.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.catalog import CatalogCache, get_catalog_cache
from storefront.db.engine import get_db
from storefront.schemas.catalog import CategoryRead, ProductPage, ProductRead
from storefront.services.catalog_service import CatalogService

router = APIRouter()


def _svc(
    db: AsyncSession = Depends(get_db),
    cache: CatalogCache = Depends(get_catalog_cache),
) -> CatalogService:
    return CatalogService(db, cache)


@router.get("/categories", response_model=list[CategoryRead])
async def list_categories(svc: CatalogService = Depends(_svc)):
    return await svc.list_categories()


@router.get("/products", response_model=ProductPage)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category_id: Optional[uuid.UUID] = None,
    svc: CatalogService = Depends(_svc),
):
    return await svc.list_products(page=page, limit=limit, category_id=category_id)


@router.get("/products/{product_id}", response_model=ProductRead)
async def get_product(product_id: uuid.UUID, svc: CatalogService = Depends(_svc)):
    return await svc.get_active_product(product_id)
