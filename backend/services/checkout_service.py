"""
Checkout — manual bank-transfer orders backed by an uploaded proof of payment.

Placing an order is one DB transaction:
    order row → order items (price/name snapshot, stock decremented)
    → proof file stored → payment_proofs row → cart cleared → commit

A storage failure rolls the transaction back. A failed commit removes the file
that was already written, so no proof is left without an order.
"""
import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from config import settings
from db_models import Order, OrderItem, PaymentProof, Product, Profile
from domain.constants import PROOF_ALLOWED_EXTENSIONS
from domain.enums import OrderStatus, ProofReviewStatus
from domain.errors import ValidationError
from models import ShippingInfo
from services import cart_service, storage_service
from utils.validators import validate_phone

logger = logging.getLogger(__name__)


def payment_instructions(cart: dict | None = None) -> dict:
    """Bank details and upload rules shown on the checkout page."""
    return {
        "method": "bank_transfer",
        "bank": {
            "bank_name": settings.bank_name,
            "account_name": settings.bank_account_name,
            "account_number": settings.bank_account_number,
        },
        "currency": settings.currency,
        "cart": cart,
        "shipping_states": settings.shipping_states_list,
        "accepted_proof_types": sorted(PROOF_ALLOWED_EXTENSIONS),
        "max_proof_bytes": settings.max_proof_bytes,
    }


def validate_shipping(shipping: ShippingInfo, user: Profile) -> ShippingInfo:
    """Normalize the checkout form. Email falls back to the account email."""
    for field in ("full_name", "phone", "address"):
        if not (getattr(shipping, field) or "").strip():
            raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required", field=field)

    state = (shipping.state or "").strip()
    if state:
        allowed = {s.lower(): s for s in settings.shipping_states_list}
        if state.lower() not in allowed:
            raise ValidationError(
                f"We do not ship to '{state}'",
                field="state",
                details={"allowed": settings.shipping_states_list},
            )
        state = allowed[state.lower()]

    email = (shipping.email or "").strip().lower() or user.email
    if "@" not in email:
        raise ValidationError("Email address is invalid", field="email")

    return ShippingInfo(
        full_name=shipping.full_name.strip(),
        phone=validate_phone(shipping.phone),
        email=email,
        address=shipping.address.strip(),
        state=state,
        city=(shipping.city or "").strip(),
    )


async def _take_stock(db: AsyncSession, product: Product, quantity: int) -> None:
    """
    Decrement stock in SQL, only while enough is left.

    A concurrent checkout that got there first leaves no row to update.
    """
    res = await db.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .returning(Product.stock)
        .execution_options(synchronize_session=False)
    )
    remaining = res.scalar_one_or_none()
    if remaining is None:
        raise ValidationError(
            "Some items are no longer in stock",
            field="cart",
            details={"items": [{"product_id": product.id, "requested": quantity}]},
        )
    set_committed_value(product, "stock", remaining)


async def place_order(
    db: AsyncSession,
    *,
    user: Profile,
    shipping: ShippingInfo,
    proof_filename: str | None,
    proof_content_type: str | None,
    proof_data: bytes,
) -> Order:
    """Turn the user's cart into an order awaiting payment review."""
    shipping = validate_shipping(shipping, user)
    content_type = storage_service.validate_proof_upload(proof_filename, proof_content_type, proof_data)

    lines = await cart_service.list_items(db, user_id=user.id)
    if not lines:
        raise ValidationError("Your cart is empty", field="cart")

    short = [
        {"product_id": line.product_id, "requested": line.quantity, "available": line.product.stock}
        for line in lines
        if line.quantity > line.product.stock
    ]
    if short:
        raise ValidationError("Some items are no longer in stock", field="cart", details={"items": short})

    totals = cart_service.price_totals(sum(line.product.price * line.quantity for line in lines))

    order = Order(
        user_id=user.id,
        status=OrderStatus.PENDING_PAYMENT_REVIEW.value,
        subtotal_amount=totals["subtotal"],
        shipping_fee=totals["shipping_fee"],
        total_amount=totals["total"],
        full_name=shipping.full_name,
        phone=shipping.phone,
        email=shipping.email,
        address=shipping.address,
        state=shipping.state,
        city=shipping.city,
    )
    for line in lines:
        order.items.append(
            OrderItem(
                product_id=line.product_id,
                product_name=line.product.name,
                quantity=line.quantity,
                price=line.product.price,
            )
        )
    db.add(order)

    stored_path = None
    try:
        for line in lines:
            await _take_stock(db, line.product, line.quantity)
        await db.flush()  # order.id names the proof file
        stored_path = await storage_service.save_proof(order.id, proof_filename, proof_data)
        order.proofs.append(
            PaymentProof(
                file_url=stored_path,
                content_type=content_type,
                review_status=ProofReviewStatus.PENDING.value,
            )
        )
        await cart_service.clear(db, user_id=user.id)
        await db.commit()
    except Exception:
        await db.rollback()
        if stored_path:
            await storage_service.delete(stored_path)
        raise

    logger.info(
        f"Order {order.id} placed by profile {user.id}: "
        f"{len(order.items)} line(s), total {order.total_amount:.2f} {settings.currency}"
    )
    return order
