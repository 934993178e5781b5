"""
Customer order history. Only the caller's own orders are visible.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import Profile
from deps import require_user
from domain.responses import success_response
from models import OrderResponse
from services import order_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("")
async def list_my_orders(user: Profile = Depends(require_user), db: AsyncSession = Depends(get_db)):
    orders = await order_service.list_user_orders(db, user_id=user.id)
    return success_response(
        data=[OrderResponse.model_validate(o).model_dump(mode="json") for o in orders],
        meta={"total": len(orders)},
    )


@router.get("/{order_id}")
async def get_my_order(
    order_id: int,
    user: Profile = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.get_user_order(db, user_id=user.id, order_id=order_id)
    return success_response(data=OrderResponse.model_validate(order).model_dump(mode="json"))
