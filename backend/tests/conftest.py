"""
Pytest configuration and shared fixtures for ZAMS Mart tests.

Provides an in-memory SQLite session, an httpx client bound to the FastAPI app
(same event loop as the session), a temporary upload directory, and sample
accounts / catalog rows.
"""
import os

# Test-only settings; must be in place before config.settings is built
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-pytest-only")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAILS"] = "admin@zamsmart.test"

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from config import settings  # noqa: E402
from database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from main import app  # noqa: E402
from middleware.rate_limit import limiter  # noqa: E402

CUSTOMER_EMAIL = "ada@example.com"
ADMIN_EMAIL = "admin@zamsmart.test"
PASSWORD = "secret123"

# Smallest useful PNG-looking payload; content is never decoded
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.4\n%receipt\n"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine.sync_engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for the app with get_db overridden to the test session.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Proof uploads go to a per-test temporary directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()


# ── Account Fixtures ─────────────────────────────────────────────────


def bearer(profile) -> dict:
    """Authorization header for a profile."""
    from services.auth_service import token_for

    return {"Authorization": f"Bearer {token_for(profile)}"}


@pytest.fixture
async def customer(db_session: AsyncSession):
    from services import auth_service

    profile = await auth_service.signup(
        db_session, email=CUSTOMER_EMAIL, password=PASSWORD, full_name="Ada Obi"
    )
    await db_session.commit()
    return profile


@pytest.fixture
async def other_customer(db_session: AsyncSession):
    from services import auth_service

    profile = await auth_service.signup(
        db_session, email="bola@example.com", password=PASSWORD, full_name="Bola Ade"
    )
    await db_session.commit()
    return profile


@pytest.fixture
async def admin(db_session: AsyncSession):
    from services import auth_service

    profile = await auth_service.signup(
        db_session, email=ADMIN_EMAIL, password=PASSWORD, full_name="Store Admin"
    )
    await db_session.commit()
    return profile


@pytest.fixture
def customer_headers(customer) -> dict:
    return bearer(customer)


@pytest.fixture
def admin_headers(admin) -> dict:
    return bearer(admin)


# ── Catalog Fixtures ─────────────────────────────────────────────────


@pytest.fixture
async def categories(db_session: AsyncSession) -> dict:
    """Hair Care and Skin Care, keyed by slug."""
    from services import catalog_service

    hair = await catalog_service.create_category(db_session, name="Hair Care")
    skin = await catalog_service.create_category(db_session, name="Skin Care")
    await db_session.commit()
    return {"hair-care": hair, "skin-care": skin}


@pytest.fixture
async def products(db_session: AsyncSession, categories: dict) -> dict:
    """
    Three products, created oldest to newest:
        cream   4500  stock 50  hair-care  featured
        shampoo 3200  stock 2   hair-care
        lotion  30000 stock 10  skin-care  featured
    """
    from services import catalog_service

    cream = await catalog_service.create_product(
        db_session,
        name="Organic Shea Butter Hair Cream",
        description="Deeply moisturizing hair cream.",
        price=4500.0,
        stock=50,
        category_id=categories["hair-care"].id,
        is_featured=True,
    )
    shampoo = await catalog_service.create_product(
        db_session,
        name="Herbal Anti-Dandruff Shampoo",
        description="Neem and tea tree oil.",
        price=3200.0,
        stock=2,
        category_id=categories["hair-care"].id,
    )
    lotion = await catalog_service.create_product(
        db_session,
        name="Cocoa Butter Body Lotion",
        description="24-hour moisture.",
        price=30000.0,
        stock=10,
        category_id=categories["skin-care"].id,
        is_featured=True,
    )
    await db_session.commit()
    return {"cream": cream, "shampoo": shampoo, "lotion": lotion}


# ── Checkout Helpers ─────────────────────────────────────────────────


def shipping_form(**overrides) -> dict:
    form = {
        "full_name": "Ada Obi",
        "phone": "+234 801 234 5678",
        "email": "",
        "address": "12 Marina Road",
        "state": "Lagos",
        "city": "Ikeja",
    }
    form.update(overrides)
    return form


def proof_file(name: str = "receipt.png", data: bytes = PNG_BYTES, content_type: str = "image/png") -> dict:
    return {"proof": (name, data, content_type)}


async def place_order(db_session, user, product, quantity=1, **shipping):
    """Put one product in the user's cart and check out with a PNG proof."""
    from models import ShippingInfo
    from services import cart_service, checkout_service

    await cart_service.add_item(db_session, user_id=user.id, product_id=product.id, quantity=quantity)
    await db_session.commit()
    return await checkout_service.place_order(
        db_session,
        user=user,
        shipping=ShippingInfo(**shipping_form(**shipping)),
        proof_filename="receipt.png",
        proof_content_type="image/png",
        proof_data=PNG_BYTES,
    )
