"""
Storefront catalog endpoints — public, no auth required.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Pagination, pagination_params
from domain.constants import CATALOG_ALL_SLUG
from domain.enums import ProductSort
from domain.responses import paginated_response, success_response
from models import CategoryResponse, HomeResponse, ProductResponse
from services import catalog_service
from utils.validators import slug_path

logger = logging.getLogger(__name__)
router = APIRouter(tags=["catalog"])


def _product(p) -> dict:
    return ProductResponse.model_validate(p).model_dump(mode="json")


def _category(c) -> dict:
    return CategoryResponse.model_validate(c).model_dump(mode="json")


@router.get("/home")
async def home(db: AsyncSession = Depends(get_db)):
    """Featured products, new arrivals and a handful of categories."""
    sections = await catalog_service.home(db)
    return success_response(data=HomeResponse.model_validate(sections).model_dump(mode="json"))


@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await catalog_service.list_categories(db)
    return success_response(
        data=[_category(c) for c in categories],
        meta={"total": len(categories)},
    )


@router.get("/categories/{slug}")
async def get_category(slug: str = Depends(slug_path), db: AsyncSession = Depends(get_db)):
    category = await catalog_service.get_category_by_slug(db, slug=slug)
    return success_response(data=_category(category))


@router.get("/products")
async def list_products(
    category: str = Query(CATALOG_ALL_SLUG, max_length=120, description="'all', 'featured' or a category slug"),
    sort: ProductSort = Query(ProductSort.NEWEST),
    q: str | None = Query(None, max_length=100),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    products, total, matched = await catalog_service.list_products(
        db,
        slug=category.strip().lower() or CATALOG_ALL_SLUG,
        sort=sort,
        q=q,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        items=[_product(p) for p in products],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
        extra_meta={
            "category": _category(matched) if matched else None,
            "sort": sort.value,
        },
    )


@router.get("/products/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await catalog_service.get_product(db, product_id=product_id)
    return success_response(data=_product(product))
