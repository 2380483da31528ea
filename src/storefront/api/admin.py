"""Admin API — catalog, coupon, and order management.

Learn: The whole router is mounted with require_admin, so every route
here runs the bearer-token check and then the role check before the
handler sees the request.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.catalog import CatalogCache, get_catalog_cache
from storefront.db.engine import get_db
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryRead,
    ProductCreate,
    ProductPage,
    ProductRead,
    ProductUpdate,
)
from storefront.schemas.coupon import CouponCreate, CouponRead
from storefront.schemas.order import OrderRead, OrderStatusUpdate
from storefront.services.catalog_service import CatalogService
from storefront.services.coupon_service import CouponService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/admin")


def _catalog(
    db: AsyncSession = Depends(get_db),
    cache: CatalogCache = Depends(get_catalog_cache),
) -> CatalogService:
    return CatalogService(db, cache)


def _orders(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


def _coupons(db: AsyncSession = Depends(get_db)) -> CouponService:
    return CouponService(db)


# ─── Products ───────────────────────────────────────────

@router.get("/products", response_model=ProductPage)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category_id: Optional[uuid.UUID] = None,
    status: Optional[str] = Query(None, pattern=r"^(active|draft|archived)$"),
    svc: CatalogService = Depends(_catalog),
):
    """All products, any status unless filtered."""
    return await svc.list_products(
        page=page, limit=limit, category_id=category_id, status=status
    )


@router.post("/products", response_model=ProductRead, status_code=201)
async def create_product(body: ProductCreate, svc: CatalogService = Depends(_catalog)):
    product = await svc.create_product(body)
    await svc.db.commit()
    return product


@router.patch("/products/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: uuid.UUID,
    body: ProductUpdate,
    svc: CatalogService = Depends(_catalog),
):
    product = await svc.update_product(product_id, body)
    await svc.db.commit()
    return product


@router.delete("/products/{product_id}")
async def delete_product(product_id: uuid.UUID, svc: CatalogService = Depends(_catalog)):
    await svc.delete_product(product_id)
    await svc.db.commit()
    return {"deleted": True}


# ─── Categories ─────────────────────────────────────────

@router.post("/categories", response_model=CategoryRead, status_code=201)
async def create_category(body: CategoryCreate, svc: CatalogService = Depends(_catalog)):
    category = await svc.create_category(body)
    await svc.db.commit()
    return category


# ─── Coupons ────────────────────────────────────────────

@router.get("/coupons", response_model=list[CouponRead])
async def list_coupons(svc: CouponService = Depends(_coupons)):
    return await svc.list_coupons()


@router.post("/coupons", response_model=CouponRead, status_code=201)
async def create_coupon(body: CouponCreate, svc: CouponService = Depends(_coupons)):
    coupon = await svc.create_coupon(body)
    await svc.db.commit()
    return coupon


# ─── Orders ─────────────────────────────────────────────

@router.get("/orders", response_model=list[OrderRead])
async def list_orders(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    svc: OrderService = Depends(_orders),
):
    return await svc.list_all(status=status, limit=limit)


@router.patch("/orders/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: uuid.UUID,
    body: OrderStatusUpdate,
    svc: OrderService = Depends(_orders),
):
    order = await svc.update_status(order_id, body.status, body.tracking_number)
    await svc.db.commit()
    return order
