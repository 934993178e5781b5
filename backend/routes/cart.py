"""
Cart endpoints — the signed-in customer's server-side cart.

Every mutation returns the full cart summary so the client can re-render totals.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import Profile
from deps import require_user
from domain.responses import success_response
from models import CartAddRequest, CartSummaryResponse, CartUpdateRequest
from services import cart_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cart", tags=["cart"])


async def _summary(db: AsyncSession, user: Profile) -> dict:
    summary = await cart_service.summary(db, user_id=user.id)
    return success_response(data=CartSummaryResponse.model_validate(summary).model_dump(mode="json"))


@router.get("")
async def get_cart(user: Profile = Depends(require_user), db: AsyncSession = Depends(get_db)):
    return await _summary(db, user)


@router.post("/items", status_code=201)
async def add_to_cart(
    request: CartAddRequest,
    user: Profile = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await cart_service.add_item(db, user_id=user.id, product_id=request.product_id, quantity=request.quantity)
    await db.commit()
    return await _summary(db, user)


@router.patch("/items/{product_id}")
async def update_cart_item(
    product_id: int,
    request: CartUpdateRequest,
    user: Profile = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await cart_service.update_quantity(db, user_id=user.id, product_id=product_id, quantity=request.quantity)
    await db.commit()
    return await _summary(db, user)


@router.delete("/items/{product_id}")
async def remove_cart_item(
    product_id: int,
    user: Profile = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await cart_service.remove_item(db, user_id=user.id, product_id=product_id)
    await db.commit()
    return await _summary(db, user)


@router.delete("")
async def clear_cart(user: Profile = Depends(require_user), db: AsyncSession = Depends(get_db)):
    removed = await cart_service.clear(db, user_id=user.id)
    await db.commit()
    logger.info(f"Cart cleared for profile {user.id} ({removed} line(s))")
    return await _summary(db, user)
