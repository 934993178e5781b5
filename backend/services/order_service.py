"""
Order service — customer order history and back-office order management.

Customers only ever see their own orders; admins see everything. Status
writes are unconditional: any of the five statuses may follow any other.
"""
import logging
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, PaymentProof, Product, Profile
from domain.constants import RECENT_ORDERS_LIMIT
from domain.enums import OrderStatus, ProofReviewStatus
from domain.errors import NotFoundError
from services import storage_service
from utils.validators import contains_pattern

logger = logging.getLogger(__name__)


# ── Customer ────────────────────────────────────────────────────────

async def list_user_orders(db: AsyncSession, *, user_id: int) -> list[Order]:
    res = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(res.scalars().all())


async def get_user_order(db: AsyncSession, *, user_id: int, order_id: int) -> Order:
    """Someone else's order is reported as missing, not forbidden."""
    res = await db.execute(
        select(Order).where(Order.id == order_id, Order.user_id == user_id)
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", str(order_id))
    return order


# ── Admin ───────────────────────────────────────────────────────────

async def get_order(db: AsyncSession, *, order_id: int) -> Order:
    res = await db.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", str(order_id))
    return order


async def list_orders(
    db: AsyncSession,
    *,
    status: OrderStatus | None = None,
    q: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Order], int]:
    """All orders, newest first. ``q`` matches customer name, email or phone."""
    filters = []
    if status is not None:
        filters.append(Order.status == OrderStatus(status).value)
    if q:
        pattern = contains_pattern(q)
        filters.append(
            or_(
                func.lower(Order.full_name).like(pattern, escape="\\"),
                func.lower(Order.email).like(pattern, escape="\\"),
                Order.phone.like(pattern, escape="\\"),
            )
        )

    total = (
        await db.execute(select(func.count()).select_from(Order).where(*filters))
    ).scalar_one()
    res = await db.execute(
        select(Order)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(res.scalars().all()), total


async def update_order_status(db: AsyncSession, *, order_id: int, status: OrderStatus) -> Order:
    order = await get_order(db, order_id=order_id)
    previous = order.status
    order.status = OrderStatus(status).value
    order.updated_at = datetime.utcnow()
    await db.flush()
    logger.info(f"Order {order.id} status: {previous!r} -> {order.status!r}")
    return order


async def get_order_proof(db: AsyncSession, *, order_id: int) -> tuple[bytes, str, str]:
    """
    Load the newest proof of payment for an order.

    Returns (file bytes, content type, download filename).
    """
    order = await get_order(db, order_id=order_id)
    if not order.proofs:
        raise NotFoundError("Payment proof for order", str(order_id))

    proof = order.proofs[-1]
    data = await storage_service.read(proof.file_url)
    return data, proof.content_type, proof.file_url.rsplit("/", 1)[-1]


async def review_proof(
    db: AsyncSession,
    *,
    proof_id: int,
    decision: ProofReviewStatus,
    reviewer: Profile,
) -> PaymentProof:
    """Mark a proof approved or rejected. The order status is left alone."""
    proof = await db.get(PaymentProof, proof_id)
    if not proof:
        raise NotFoundError("Payment proof", str(proof_id))

    proof.review_status = ProofReviewStatus(decision).value
    proof.reviewed_by = reviewer.id
    proof.reviewed_at = datetime.utcnow()
    await db.flush()
    logger.info(f"Proof {proof.id} (order {proof.order_id}) {proof.review_status} by profile {reviewer.id}")
    return proof


async def stats(db: AsyncSession) -> dict:
    """Dashboard numbers. Cancelled orders do not count towards sales."""
    total_sales = (
        await db.execute(
            select(func.coalesce(func.sum(Order.total_amount), 0.0)).where(
                Order.status != OrderStatus.CANCELLED.value
            )
        )
    ).scalar_one()
    total_orders = (await db.execute(select(func.count()).select_from(Order))).scalar_one()
    pending_payments = (
        await db.execute(
            select(func.count())
            .select_from(Order)
            .where(Order.status == OrderStatus.PENDING_PAYMENT_REVIEW.value)
        )
    ).scalar_one()
    total_products = (await db.execute(select(func.count()).select_from(Product))).scalar_one()
    recent = await db.execute(
        select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(RECENT_ORDERS_LIMIT)
    )

    return {
        "total_sales": round(float(total_sales), 2),
        "total_orders": total_orders,
        "pending_payments": pending_payments,
        "total_products": total_products,
        "recent_orders": list(recent.scalars().all()),
    }
