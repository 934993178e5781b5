"""
Cart service — the authenticated customer's server-side cart and the
shipping rule shared by the cart summary and checkout.
"""
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import CartItem, Product
from domain.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def compute_shipping(subtotal: float) -> float:
    """Flat fee, waived once the subtotal is strictly above the free-shipping threshold."""
    if subtotal > settings.free_shipping_threshold:
        return 0.0
    return settings.flat_shipping_fee


def price_totals(subtotal: float) -> dict:
    subtotal = round(subtotal, 2)
    shipping = compute_shipping(subtotal)
    return {
        "subtotal": subtotal,
        "shipping_fee": shipping,
        "total": round(subtotal + shipping, 2),
        "free_shipping_remaining": round(max(0.0, settings.free_shipping_threshold - subtotal), 2),
    }


async def list_items(db: AsyncSession, *, user_id: int) -> list[CartItem]:
    res = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.asc(), CartItem.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(res.scalars().all())


async def _get_line(db: AsyncSession, user_id: int, product_id: int) -> CartItem | None:
    res = await db.execute(
        select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    )
    return res.scalar_one_or_none()


def _check_stock(product: Product, quantity: int) -> None:
    if quantity > product.stock:
        raise ValidationError(
            f"Only {product.stock} unit(s) of {product.name} in stock",
            field="quantity",
            details={"product_id": product.id, "available": product.stock},
        )


async def add_item(db: AsyncSession, *, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
    """Add to cart; adding a product already in the cart increases its quantity."""
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")
    product = await db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", str(product_id))

    line = await _get_line(db, user_id, product_id)
    new_quantity = quantity + (line.quantity if line else 0)
    _check_stock(product, new_quantity)

    if line:
        line.quantity = new_quantity
    else:
        line = CartItem(user_id=user_id, product_id=product_id, quantity=new_quantity)
        db.add(line)
    await db.flush()
    return line


async def update_quantity(db: AsyncSession, *, user_id: int, product_id: int, quantity: int) -> CartItem | None:
    """Set a line's quantity. Zero or less removes the line and returns None."""
    line = await _get_line(db, user_id, product_id)
    if not line:
        raise NotFoundError("Cart item", str(product_id))

    if quantity <= 0:
        await db.delete(line)
        await db.flush()
        return None

    product = await db.get(Product, product_id)
    _check_stock(product, quantity)
    line.quantity = quantity
    await db.flush()
    return line


async def remove_item(db: AsyncSession, *, user_id: int, product_id: int) -> None:
    line = await _get_line(db, user_id, product_id)
    if not line:
        raise NotFoundError("Cart item", str(product_id))
    await db.delete(line)
    await db.flush()


async def clear(db: AsyncSession, *, user_id: int) -> int:
    res = await db.execute(
        delete(CartItem)
        .where(CartItem.user_id == user_id)
        .execution_options(synchronize_session="fetch")
    )
    return res.rowcount or 0


def summarize(items: list[CartItem]) -> dict:
    lines = []
    subtotal = 0.0
    for item in items:
        line_total = item.product.price * item.quantity
        subtotal += line_total
        lines.append(
            {
                "product": item.product,
                "quantity": item.quantity,
                "unit_price": item.product.price,
                "line_total": round(line_total, 2),
            }
        )

    return {
        "items": lines,
        "item_count": sum(i.quantity for i in items),
        **price_totals(subtotal),
        "currency": settings.currency,
    }


async def summary(db: AsyncSession, *, user_id: int) -> dict:
    return summarize(await list_items(db, user_id=user_id))
