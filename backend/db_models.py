"""
SQLAlchemy ORM models for the ZAMS Mart storefront.

Tables:
    profiles        — customer and admin accounts
    categories      — catalog sections (slug-addressable)
    products        — catalog items, optionally in one category
    cart_items      — per-user server-side shopping cart lines
    orders          — bank-transfer orders with shipping details
    order_items     — order lines with price/name snapshots
    payment_proofs  — uploaded transfer receipts awaiting review
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base
from domain.enums import OrderStatus, ProofReviewStatus, UserRole


class Profile(Base):
    """Storefront account. The role column is the authority for admin access."""
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=False)
    full_name = Column(String(200), nullable=False, default="")
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)  # "admin" | "customer"
    created_at = Column(DateTime, default=datetime.utcnow)

    orders = relationship("Order", back_populates="user", lazy="select")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    products = relationship("Product", back_populates="category", lazy="select", passive_deletes=True)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)  # seeding upserts on name
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False, default=0.0)
    stock = Column(Integer, nullable=False, default=0)
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    image_url = Column(String(500), nullable=False, default="")
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Storefront pages always render the category name next to the product
    category = relationship("Category", back_populates="products", lazy="selectin")

    __table_args__ = (
        Index("ix_products_category_created", "category_id", "created_at"),
    )


class CartItem(Base):
    """One product line in a user's cart; quantity is merged on repeat adds."""
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_user_product"),
    )


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    status = Column(
        String(30),
        nullable=False,
        default=OrderStatus.PENDING_PAYMENT_REVIEW.value,
        index=True,
    )
    subtotal_amount = Column(Float, nullable=False, default=0.0)
    shipping_fee = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False, default=0.0)  # subtotal + shipping

    # Shipping details captured at checkout
    full_name = Column(String(200), nullable=False)
    phone = Column(String(40), nullable=False)
    email = Column(String(255), nullable=False, default="")
    address = Column(String(500), nullable=False)
    state = Column(String(80), nullable=False, default="")
    city = Column(String(120), nullable=False, default="")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("Profile", back_populates="orders", lazy="select")
    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    proofs = relationship(
        "PaymentProof",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="PaymentProof.id",
    )

    __table_args__ = (
        # Customer order history: filter by user, newest first
        Index("ix_orders_user_created", "user_id", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Nullable so that deleting a product leaves past orders intact
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String(200), nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Float, nullable=False, default=0.0)  # unit price at purchase time

    order = relationship("Order", back_populates="items")


class PaymentProof(Base):
    """Uploaded bank-transfer receipt for an order."""
    __tablename__ = "payment_proofs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    file_url = Column(String(500), nullable=False)  # storage path: <bucket>/<order_id>-<token>.<ext>
    content_type = Column(String(100), nullable=False, default="application/octet-stream")
    review_status = Column(
        String(20),
        nullable=False,
        default=ProofReviewStatus.PENDING.value,
        index=True,
    )
    reviewed_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="proofs")
