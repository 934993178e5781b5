"""
Sample catalog seeding.

Plain upserts: categories keyed by slug, products keyed by name. Running it
twice leaves the same rows behind.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Category, Product

logger = logging.getLogger(__name__)

SAMPLE_CATEGORIES = [
    {"name": "Hair Care", "slug": "hair-care"},
    {"name": "Skin Care", "slug": "skin-care"},
    {"name": "Home Essentials", "slug": "home-essentials"},
]

SAMPLE_PRODUCTS = [
    {
        "name": "Organic Shea Butter Hair Cream",
        "description": "Deeply moisturizing hair cream for natural hair growth and shine.",
        "price": 4500.0,
        "stock": 50,
        "category_slug": "hair-care",
        "image_url": "https://picsum.photos/seed/hair1/400/400",
        "is_featured": True,
    },
    {
        "name": "Herbal Anti-Dandruff Shampoo",
        "description": "Effective shampoo with neem and tea tree oil to combat dandruff.",
        "price": 3200.0,
        "stock": 100,
        "category_slug": "hair-care",
        "image_url": "https://picsum.photos/seed/shampoo/400/400",
        "is_featured": True,
    },
    {
        "name": "Cocoa Butter Body Lotion",
        "description": "Rich body lotion for 24-hour moisture and glowing skin.",
        "price": 5800.0,
        "stock": 75,
        "category_slug": "skin-care",
        "image_url": "https://picsum.photos/seed/lotion/400/400",
        "is_featured": True,
    },
]


async def _upsert_category(db: AsyncSession, name: str, slug: str) -> Category:
    res = await db.execute(select(Category).where(Category.slug == slug))
    category = res.scalar_one_or_none()
    if category:
        category.name = name
    else:
        category = Category(name=name, slug=slug)
        db.add(category)
    await db.flush()
    return category


async def _upsert_product(db: AsyncSession, data: dict, category_id: int | None) -> Product:
    res = await db.execute(select(Product).where(Product.name == data["name"]))
    product = res.scalar_one_or_none()
    if not product:
        product = Product(name=data["name"])
        db.add(product)

    product.description = data["description"]
    product.price = data["price"]
    product.stock = data["stock"]
    product.category_id = category_id
    product.image_url = data["image_url"]
    product.is_featured = data["is_featured"]
    await db.flush()
    await db.refresh(product, attribute_names=["category"])
    return product


async def seed_sample_data(db: AsyncSession) -> dict:
    """Upsert the sample categories and products. Returns the row counts touched."""
    by_slug = {}
    for c in SAMPLE_CATEGORIES:
        category = await _upsert_category(db, c["name"], c["slug"])
        by_slug[category.slug] = category.id

    for p in SAMPLE_PRODUCTS:
        await _upsert_product(db, p, by_slug.get(p["category_slug"]))

    logger.info(f"Seeded {len(SAMPLE_CATEGORIES)} categories and {len(SAMPLE_PRODUCTS)} products")
    return {"categories": len(SAMPLE_CATEGORIES), "products": len(SAMPLE_PRODUCTS)}
