"""
Checkout endpoints — bank transfer with an uploaded proof of payment.

  GET  /checkout/payment-instructions  -> bank details, cart totals, upload rules
  POST /checkout                       -> multipart form: shipping fields + proof file
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from db_models import Profile
from deps import optional_user, require_user
from domain.responses import success_response
from middleware.rate_limit import rate_limit
from models import OrderResponse, PaymentInstructionsResponse, ShippingInfo
from services import cart_service, checkout_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("/payment-instructions")
async def payment_instructions(
    user: Optional[Profile] = Depends(optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Works signed out too; the cart totals are only included for a signed-in user."""
    cart = await cart_service.summary(db, user_id=user.id) if user else None
    data = PaymentInstructionsResponse.model_validate(checkout_service.payment_instructions(cart))
    return success_response(data=data.model_dump(mode="json"))


@router.post("", status_code=201)
async def place_order(
    full_name: str = Form(..., max_length=200),
    phone: str = Form(..., max_length=40),
    address: str = Form(..., max_length=500),
    email: str = Form("", max_length=255),
    state: str = Form("", max_length=80),
    city: str = Form("", max_length=120),
    proof: UploadFile = File(..., description="Bank transfer receipt (image or PDF)"),
    user: Profile = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=10, window_seconds=60)),
):
    # One byte past the limit is enough to reject an oversized proof
    data = await proof.read(settings.max_proof_bytes + 1)
    order = await checkout_service.place_order(
        db,
        user=user,
        shipping=ShippingInfo(
            full_name=full_name,
            phone=phone,
            email=email,
            address=address,
            state=state,
            city=city,
        ),
        proof_filename=proof.filename,
        proof_content_type=proof.content_type,
        proof_data=data,
    )
    return success_response(data=OrderResponse.model_validate(order).model_dump(mode="json"))
