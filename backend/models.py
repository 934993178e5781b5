"""
Pydantic models for request/response validation.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from domain.enums import OrderStatus, ProofReviewStatus


class StoreBase(BaseModel):
    """Shared base — construct by name or alias, or from ORM rows; strings are stripped."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True, str_strip_whitespace=True)


# ── Auth Models ─────────────────────────────────────────────────────

class SignupRequest(StoreBase):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=1, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=200)


class LoginRequest(StoreBase):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class ProfileResponse(StoreBase):
    id: int
    email: str
    full_name: str
    role: str
    created_at: Optional[datetime] = None


class AuthResponse(StoreBase):
    profile: ProfileResponse
    access_token: str
    token_type: str = "Bearer"
    expires_in_seconds: int


# ── Catalog Models ──────────────────────────────────────────────────

class CategoryResponse(StoreBase):
    id: int
    name: str
    slug: str
    created_at: Optional[datetime] = None


class ProductResponse(StoreBase):
    id: int
    name: str
    description: str
    price: float
    stock: int
    category_id: Optional[int] = None
    image_url: str
    is_featured: bool
    created_at: Optional[datetime] = None
    category: Optional[CategoryResponse] = None

    @computed_field
    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class HomeResponse(StoreBase):
    featured: List[ProductResponse]
    new_arrivals: List[ProductResponse]
    categories: List[CategoryResponse]


class CategoryCreateRequest(StoreBase):
    name: str = Field(..., min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=120)


class CategoryUpdateRequest(StoreBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=120)


class ProductCreateRequest(StoreBase):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    price: float = Field(..., ge=0)
    stock: int = Field(default=0, ge=0)
    category_id: Optional[int] = None
    image_url: str = Field(default="", max_length=500)
    is_featured: bool = False


class ProductUpdateRequest(StoreBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    price: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    is_featured: Optional[bool] = None


# ── Cart Models ─────────────────────────────────────────────────────

class CartAddRequest(StoreBase):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1, le=999)


class CartUpdateRequest(StoreBase):
    # zero or negative removes the line
    quantity: int = Field(..., le=999)


class CartLineResponse(StoreBase):
    product: ProductResponse
    quantity: int
    unit_price: float
    line_total: float


class CartSummaryResponse(StoreBase):
    items: List[CartLineResponse]
    item_count: int
    subtotal: float
    shipping_fee: float
    total: float
    free_shipping_remaining: float
    currency: str


# ── Checkout / Order Models ─────────────────────────────────────────

class ShippingInfo(StoreBase):
    full_name: str
    phone: str
    email: str = ""
    address: str
    state: str = ""
    city: str = ""


class OrderItemResponse(StoreBase):
    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: float


class PaymentProofResponse(StoreBase):
    id: int
    order_id: int
    file_url: str
    content_type: str
    review_status: ProofReviewStatus
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class OrderResponse(StoreBase):
    id: int
    user_id: int
    status: OrderStatus
    subtotal_amount: float
    shipping_fee: float
    total_amount: float
    full_name: str
    phone: str
    email: str
    address: str
    state: str
    city: str
    created_at: Optional[datetime] = None
    items: List[OrderItemResponse] = Field(default_factory=list)
    proofs: List[PaymentProofResponse] = Field(default_factory=list)


class BankDetails(StoreBase):
    bank_name: str
    account_name: str
    account_number: str


class PaymentInstructionsResponse(StoreBase):
    method: str = "bank_transfer"
    bank: BankDetails
    currency: str
    cart: Optional[CartSummaryResponse] = None
    shipping_states: List[str]
    accepted_proof_types: List[str]
    max_proof_bytes: int


# ── Admin Models ────────────────────────────────────────────────────

class OrderStatusUpdateRequest(StoreBase):
    status: OrderStatus


class ProofReviewRequest(StoreBase):
    decision: ProofReviewStatus

    @field_validator("decision")
    @classmethod
    def decision_not_pending(cls, value: ProofReviewStatus) -> ProofReviewStatus:
        if value == ProofReviewStatus.PENDING:
            raise ValueError("decision must be 'approved' or 'rejected'")
        return value


class AdminStatsResponse(StoreBase):
    total_sales: float
    total_orders: int
    pending_payments: int
    total_products: int
    recent_orders: List[OrderResponse]


class SeedResultResponse(StoreBase):
    categories: int
    products: int
