"""
Catalog service — categories and products.

Storefront reads (home page, category listing, product detail) and the
back-office writes that manage the same rows.
"""
import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from db_models import CartItem, Category, OrderItem, Product
from domain.constants import (
    CATALOG_ALL_SLUG,
    CATALOG_FEATURED_SLUG,
    HOME_CATEGORIES_LIMIT,
    HOME_FEATURED_LIMIT,
    HOME_NEW_ARRIVALS_LIMIT,
)
from domain.enums import ProductSort
from domain.errors import ConflictError, NotFoundError
from utils.validators import contains_pattern, validate_slug

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════
# Categories
# ════════════════════════════════════════════════════════════════════

async def list_categories(db: AsyncSession, *, limit: int | None = None) -> list[Category]:
    stmt = select(Category).order_by(Category.name.asc())
    if limit is not None:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_category(db: AsyncSession, *, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category", str(category_id))
    return category


async def get_category_by_slug(db: AsyncSession, *, slug: str) -> Category:
    res = await db.execute(select(Category).where(Category.slug == slug))
    category = res.scalar_one_or_none()
    if not category:
        raise NotFoundError("Category", slug)
    return category


async def _ensure_slug_free(db: AsyncSession, slug: str, exclude_id: int | None = None) -> None:
    stmt = select(Category.id).where(Category.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError(f"Category slug '{slug}' is already in use")


async def create_category(db: AsyncSession, *, name: str, slug: str | None = None) -> Category:
    """Create a category; the slug is derived from the name when omitted."""
    slug = validate_slug(slug or name)
    await _ensure_slug_free(db, slug)

    category = Category(name=name.strip(), slug=slug)
    db.add(category)
    await db.flush()
    logger.info(f"Category created: {category.slug} (id={category.id})")
    return category


async def update_category(
    db: AsyncSession,
    *,
    category_id: int,
    name: str | None = None,
    slug: str | None = None,
) -> Category:
    category = await get_category(db, category_id=category_id)

    if name is not None:
        category.name = name.strip()
    if slug is not None:
        slug = validate_slug(slug)
        await _ensure_slug_free(db, slug, exclude_id=category.id)
        category.slug = slug

    await db.flush()
    logger.info(f"Category updated: {category.slug} (id={category.id})")
    return category


async def delete_category(db: AsyncSession, *, category_id: int) -> int:
    """
    Delete a category. Its products stay in the catalog without a category.

    Returns the number of products that were detached.
    """
    category = await get_category(db, category_id=category_id)

    detached = await db.execute(
        update(Product)
        .where(Product.category_id == category.id)
        .values(category_id=None)
        .execution_options(synchronize_session="fetch")
    )
    await db.delete(category)
    await db.flush()
    # Products already in the session still point at the deleted Category object
    for obj in list(db.identity_map.values()):
        if isinstance(obj, Product) and obj.category_id is None:
            set_committed_value(obj, "category", None)
    logger.info(f"Category {category_id} deleted; {detached.rowcount} product(s) detached")
    return detached.rowcount or 0


# ════════════════════════════════════════════════════════════════════
# Products: storefront reads
# ════════════════════════════════════════════════════════════════════

def _apply_sort(stmt, sort: ProductSort):
    if sort == ProductSort.PRICE_LOW:
        return stmt.order_by(Product.price.asc(), Product.id.asc())
    if sort == ProductSort.PRICE_HIGH:
        return stmt.order_by(Product.price.desc(), Product.id.asc())
    return stmt.order_by(Product.created_at.desc(), Product.id.desc())


async def list_products(
    db: AsyncSession,
    *,
    slug: str = CATALOG_ALL_SLUG,
    sort: ProductSort = ProductSort.NEWEST,
    q: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Product], int, Category | None]:
    """
    Storefront listing.

    slug:
        'all'      — every product
        'featured' — products flagged is_featured
        otherwise  — products of that category (404 if the slug is unknown)

    Returns (page, total matching, category or None).
    """
    category = None
    filters = []
    if slug == CATALOG_FEATURED_SLUG:
        filters.append(Product.is_featured.is_(True))
    elif slug != CATALOG_ALL_SLUG:
        category = await get_category_by_slug(db, slug=slug)
        filters.append(Product.category_id == category.id)

    if q:
        pattern = contains_pattern(q)
        filters.append(
            or_(
                func.lower(Product.name).like(pattern, escape="\\"),
                func.lower(Product.description).like(pattern, escape="\\"),
            )
        )

    total = (
        await db.execute(select(func.count()).select_from(Product).where(*filters))
    ).scalar_one()

    stmt = _apply_sort(select(Product).where(*filters), sort).limit(limit).offset(offset)
    res = await db.execute(stmt)
    return list(res.scalars().all()), total, category


async def list_featured(db: AsyncSession, *, limit: int = HOME_FEATURED_LIMIT) -> list[Product]:
    res = await db.execute(
        select(Product)
        .where(Product.is_featured.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
    )
    return list(res.scalars().all())


async def list_new_arrivals(db: AsyncSession, *, limit: int = HOME_NEW_ARRIVALS_LIMIT) -> list[Product]:
    res = await db.execute(
        select(Product).order_by(Product.created_at.desc(), Product.id.desc()).limit(limit)
    )
    return list(res.scalars().all())


async def home(db: AsyncSession) -> dict:
    """The three storefront home page sections."""
    return {
        "featured": await list_featured(db),
        "new_arrivals": await list_new_arrivals(db),
        "categories": await list_categories(db, limit=HOME_CATEGORIES_LIMIT),
    }


async def get_product(db: AsyncSession, *, product_id: int) -> Product:
    res = await db.execute(select(Product).where(Product.id == product_id))
    product = res.scalar_one_or_none()
    if not product:
        raise NotFoundError("Product", str(product_id))
    return product


async def count_products(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(Product))).scalar_one()


# ════════════════════════════════════════════════════════════════════
# Products: back-office writes
# ════════════════════════════════════════════════════════════════════

async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    stmt = select(Product.id).where(Product.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError(f"A product named '{name}' already exists")


async def create_product(
    db: AsyncSession,
    *,
    name: str,
    description: str = "",
    price: float,
    stock: int = 0,
    category_id: int | None = None,
    image_url: str = "",
    is_featured: bool = False,
) -> Product:
    name = name.strip()
    await _ensure_name_free(db, name)
    if category_id is not None:
        await get_category(db, category_id=category_id)

    product = Product(
        name=name,
        description=description or "",
        price=price,
        stock=stock,
        category_id=category_id,
        image_url=image_url or "",
        is_featured=is_featured,
    )
    db.add(product)
    await db.flush()
    await db.refresh(product, attribute_names=["category"])
    logger.info(f"Product created: {product.name!r} (id={product.id})")
    return product


async def update_product(db: AsyncSession, *, product_id: int, changes: dict) -> Product:
    """
    Partial update. ``changes`` holds only the fields the caller sent, so an
    explicit ``category_id: None`` clears the category.
    """
    product = await get_product(db, product_id=product_id)

    if "name" in changes and changes["name"] is not None:
        changes["name"] = changes["name"].strip()
        await _ensure_name_free(db, changes["name"], exclude_id=product.id)
    if changes.get("category_id") is not None:
        await get_category(db, category_id=changes["category_id"])

    for field in ("name", "description", "price", "stock", "image_url", "is_featured"):
        if changes.get(field) is not None:
            setattr(product, field, changes[field])
    if "category_id" in changes:
        product.category_id = changes["category_id"]

    await db.flush()
    await db.refresh(product, attribute_names=["category"])
    logger.info(f"Product updated: id={product.id} fields={sorted(changes)}")
    return product


async def delete_product(db: AsyncSession, *, product_id: int) -> Product:
    """
    Hard-delete a product.

    Past order lines keep their name/price snapshot with product_id cleared;
    cart lines pointing at the product are dropped.
    """
    product = await get_product(db, product_id=product_id)

    await db.execute(
        update(OrderItem)
        .where(OrderItem.product_id == product.id)
        .values(product_id=None)
        .execution_options(synchronize_session="fetch")
    )
    await db.execute(
        delete(CartItem)
        .where(CartItem.product_id == product.id)
        .execution_options(synchronize_session="fetch")
    )
    await db.delete(product)
    await db.flush()
    logger.info(f"Product deleted: {product.name!r} (id={product.id})")
    return product
