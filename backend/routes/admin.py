"""
Back-office endpoints — orders, payment proofs, products and categories.

Every route requires the admin role (checked against the profile row).
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import Profile
from deps import Pagination, pagination_params, require_admin
from domain.constants import CATALOG_ALL_SLUG
from domain.enums import OrderStatus, ProductSort
from domain.responses import paginated_response, success_response
from models import (
    AdminStatsResponse,
    CategoryCreateRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    OrderResponse,
    OrderStatusUpdateRequest,
    PaymentProofResponse,
    ProductCreateRequest,
    ProductResponse,
    ProductUpdateRequest,
    ProofReviewRequest,
    SeedResultResponse,
)
from services import catalog_service, order_service, seed_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _order(o) -> dict:
    return OrderResponse.model_validate(o).model_dump(mode="json")


def _product(p) -> dict:
    return ProductResponse.model_validate(p).model_dump(mode="json")


def _category(c) -> dict:
    return CategoryResponse.model_validate(c).model_dump(mode="json")


# ── Overview ────────────────────────────────────────────────────────

@router.get("/stats")
async def stats(db: AsyncSession = Depends(get_db)):
    data = await order_service.stats(db)
    return success_response(data=AdminStatsResponse.model_validate(data).model_dump(mode="json"))


@router.post("/seed")
async def seed(db: AsyncSession = Depends(get_db)):
    """Upsert the sample categories and products."""
    counts = await seed_service.seed_sample_data(db)
    await db.commit()
    return success_response(data=SeedResultResponse(**counts).model_dump())


# ── Orders ──────────────────────────────────────────────────────────

@router.get("/orders")
async def list_orders(
    status: OrderStatus | None = Query(None),
    q: str | None = Query(None, max_length=100, description="Customer name, email or phone"),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await order_service.list_orders(
        db, status=status, q=q, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        items=[_order(o) for o in orders],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/orders/{order_id}")
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    order = await order_service.get_order(db, order_id=order_id)
    return success_response(data=_order(order))


@router.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: int,
    request: OrderStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.update_order_status(db, order_id=order_id, status=request.status)
    await db.commit()
    return success_response(data=_order(order))


@router.get("/orders/{order_id}/proof")
async def get_order_proof(order_id: int, db: AsyncSession = Depends(get_db)):
    """Stream the stored proof of payment back with its content type."""
    data, content_type, filename = await order_service.get_order_proof(db, order_id=order_id)
    return Response(
        content=data,
        media_type=content_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.post("/proofs/{proof_id}/review")
async def review_proof(
    proof_id: int,
    request: ProofReviewRequest,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    proof = await order_service.review_proof(db, proof_id=proof_id, decision=request.decision, reviewer=admin)
    await db.commit()
    return success_response(data=PaymentProofResponse.model_validate(proof).model_dump(mode="json"))


# ── Products ────────────────────────────────────────────────────────

@router.get("/products")
async def list_products(
    q: str | None = Query(None, max_length=100),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    products, total, _ = await catalog_service.list_products(
        db,
        slug=CATALOG_ALL_SLUG,
        sort=ProductSort.NEWEST,
        q=q,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        items=[_product(p) for p in products],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("/products", status_code=201)
async def create_product(request: ProductCreateRequest, db: AsyncSession = Depends(get_db)):
    product = await catalog_service.create_product(db, **request.model_dump())
    await db.commit()
    return success_response(data=_product(product))


@router.patch("/products/{product_id}")
async def update_product(
    product_id: int,
    request: ProductUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    product = await catalog_service.update_product(
        db, product_id=product_id, changes=request.model_dump(exclude_unset=True)
    )
    await db.commit()
    return success_response(data=_product(product))


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await catalog_service.delete_product(db, product_id=product_id)
    await db.commit()
    return success_response(data={"id": product.id, "deleted": True})


# ── Categories ──────────────────────────────────────────────────────

@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await catalog_service.list_categories(db)
    return success_response(data=[_category(c) for c in categories], meta={"total": len(categories)})


@router.post("/categories", status_code=201)
async def create_category(request: CategoryCreateRequest, db: AsyncSession = Depends(get_db)):
    category = await catalog_service.create_category(db, name=request.name, slug=request.slug)
    await db.commit()
    return success_response(data=_category(category))


@router.patch("/categories/{category_id}")
async def update_category(
    category_id: int,
    request: CategoryUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    category = await catalog_service.update_category(
        db, category_id=category_id, name=request.name, slug=request.slug
    )
    await db.commit()
    return success_response(data=_category(category))


@router.delete("/categories/{category_id}")
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    detached = await catalog_service.delete_category(db, category_id=category_id)
    await db.commit()
    return success_response(data={"id": category_id, "deleted": True, "products_detached": detached})
