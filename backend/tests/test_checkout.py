"""
Checkout tests: payment instructions, placing an order with a proof upload,
and the all-or-nothing behavior around file storage.
"""
import pytest
from fastapi import status
from sqlalchemy import func, select

from db_models import CartItem, Order, PaymentProof, Product
from domain.errors import StorageError, ValidationError
from models import ShippingInfo
from services import cart_service, checkout_service, storage_service
from tests.conftest import PDF_BYTES, PNG_BYTES, proof_file, shipping_form


async def _fill_cart(db_session, customer, products):
    await cart_service.add_item(db_session, user_id=customer.id, product_id=products["cream"].id, quantity=2)
    await cart_service.add_item(db_session, user_id=customer.id, product_id=products["shampoo"].id, quantity=1)
    await db_session.commit()


async def _count(db_session, model) -> int:
    return (await db_session.execute(select(func.count()).select_from(model))).scalar_one()


# ── Payment instructions ────────────────────────────────────────────

@pytest.mark.api
@pytest.mark.asyncio
async def test_payment_instructions_anonymous(client):
    resp = await client.get("/checkout/payment-instructions")

    assert resp.status_code == status.HTTP_200_OK
    data = resp.json()["data"]
    assert data["method"] == "bank_transfer"
    assert data["bank"] == {
        "bank_name": "GTBank",
        "account_name": "ZAMS Mart Limited",
        "account_number": "0123456789",
    }
    assert data["cart"] is None
    assert "Lagos" in data["shipping_states"]
    assert "pdf" in data["accepted_proof_types"]
    assert data["max_proof_bytes"] == 5 * 1024 * 1024


@pytest.mark.api
@pytest.mark.asyncio
async def test_payment_instructions_include_cart(client, db_session, customer, customer_headers, products):
    await _fill_cart(db_session, customer, products)

    resp = await client.get("/checkout/payment-instructions", headers=customer_headers)
    cart = resp.json()["data"]["cart"]
    assert cart["subtotal"] == 12_200.0
    assert cart["total"] == 14_700.0


# ── Placing orders over HTTP ────────────────────────────────────────

@pytest.mark.api
@pytest.mark.asyncio
async def test_place_order_happy_path(client, db_session, customer, customer_headers, products, upload_dir):
    await _fill_cart(db_session, customer, products)

    resp = await client.post(
        "/checkout",
        data=shipping_form(),
        files=proof_file(),
        headers=customer_headers,
    )

    assert resp.status_code == status.HTTP_201_CREATED, resp.text
    order = resp.json()["data"]
    assert order["status"] == "Pending Payment Review"
    assert order["subtotal_amount"] == 12_200.0
    assert order["shipping_fee"] == 2_500.0
    assert order["total_amount"] == 14_700.0
    assert order["email"] == customer.email
    assert order["state"] == "Lagos"
    assert [(i["product_name"], i["quantity"], i["price"]) for i in order["items"]] == [
        ("Organic Shea Butter Hair Cream", 2, 4500.0),
        ("Herbal Anti-Dandruff Shampoo", 1, 3200.0),
    ]

    assert len(order["proofs"]) == 1
    proof = order["proofs"][0]
    assert proof["review_status"] == "pending"
    assert proof["content_type"] == "image/png"
    assert proof["file_url"].startswith(f"payment-proofs/{order['id']}-")
    assert proof["file_url"].endswith(".png")
    assert (upload_dir / proof["file_url"]).read_bytes() == PNG_BYTES

    # stock decremented, cart emptied
    await db_session.refresh(products["cream"])
    await db_session.refresh(products["shampoo"])
    assert products["cream"].stock == 48
    assert products["shampoo"].stock == 1
    assert await _count(db_session, CartItem) == 0


@pytest.mark.api
@pytest.mark.asyncio
async def test_place_order_pdf_proof_and_explicit_email(client, db_session, customer, customer_headers, products):
    await _fill_cart(db_session, customer, products)

    resp = await client.post(
        "/checkout",
        data=shipping_form(email="Billing@Example.com", state="abuja"),
        files=proof_file("transfer.pdf", PDF_BYTES, "application/pdf"),
        headers=customer_headers,
    )

    assert resp.status_code == status.HTTP_201_CREATED, resp.text
    order = resp.json()["data"]
    assert order["email"] == "billing@example.com"
    assert order["state"] == "Abuja"
    assert order["proofs"][0]["content_type"] == "application/pdf"


@pytest.mark.api
@pytest.mark.asyncio
async def test_place_order_requires_login(client, products):
    resp = await client.post("/checkout", data=shipping_form(), files=proof_file())
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.api
@pytest.mark.asyncio
async def test_place_order_empty_cart(client, customer_headers, products):
    resp = await client.post("/checkout", data=shipping_form(), files=proof_file(), headers=customer_headers)

    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["error"]["code"] == "validation"
    assert "cart is empty" in resp.json()["error"]["message"]


@pytest.mark.api
@pytest.mark.asyncio
async def test_place_order_rejects_unsupported_state(client, db_session, customer, customer_headers, products):
    await _fill_cart(db_session, customer, products)

    resp = await client.post(
        "/checkout",
        data=shipping_form(state="Atlantis"),
        files=proof_file(),
        headers=customer_headers,
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["error"]["details"]["allowed"] == ["Lagos", "Abuja", "Rivers", "Oyo", "Kano"]


@pytest.mark.api
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,data,content_type",
    [
        ("receipt.txt", b"paid", "text/plain"),
        ("receipt.png", b"", "image/png"),
        ("receipt.pdf", PDF_BYTES, "image/png"),
        ("receipt.exe", PNG_BYTES, "image/png"),
    ],
)
async def test_place_order_rejects_bad_proof(
    client, db_session, customer, customer_headers, products, name, data, content_type
):
    await _fill_cart(db_session, customer, products)

    resp = await client.post(
        "/checkout",
        data=shipping_form(),
        files=proof_file(name, data, content_type),
        headers=customer_headers,
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert await _count(db_session, Order) == 0
    assert await _count(db_session, CartItem) == 2


@pytest.mark.api
@pytest.mark.asyncio
async def test_place_order_rejects_oversized_proof(
    client, db_session, customer, customer_headers, products, monkeypatch
):
    from config import settings

    monkeypatch.setattr(settings, "max_proof_bytes", 32)
    await _fill_cart(db_session, customer, products)

    resp = await client.post("/checkout", data=shipping_form(), files=proof_file(), headers=customer_headers)
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert "under" in resp.json()["error"]["message"]


@pytest.mark.api
@pytest.mark.asyncio
async def test_oversized_proof_read_stops_past_limit(
    client, db_session, customer, customer_headers, products, monkeypatch
):
    from config import settings

    monkeypatch.setattr(settings, "max_proof_bytes", 32)
    await _fill_cart(db_session, customer, products)

    seen = []
    real_validate = storage_service.validate_proof_upload

    def recording_validate(filename, content_type, data):
        seen.append(len(data))
        return real_validate(filename, content_type, data)

    monkeypatch.setattr(storage_service, "validate_proof_upload", recording_validate)

    big = PNG_BYTES + b"\0" * 100_000
    resp = await client.post("/checkout", data=shipping_form(), files=proof_file(data=big), headers=customer_headers)

    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert seen == [33]
    assert await _count(db_session, Order) == 0


@pytest.mark.api
@pytest.mark.asyncio
async def test_place_order_rechecks_stock(client, db_session, customer, customer_headers, products):
    await _fill_cart(db_session, customer, products)
    products["shampoo"].stock = 0
    await db_session.commit()

    resp = await client.post("/checkout", data=shipping_form(), files=proof_file(), headers=customer_headers)

    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    short = resp.json()["error"]["details"]["items"]
    assert short == [{"product_id": products["shampoo"].id, "requested": 1, "available": 0}]


# ── Transaction boundaries ──────────────────────────────────────────

@pytest.mark.integration
@pytest.mark.asyncio
async def test_stock_taken_by_concurrent_checkout_rolls_back(
    client, db_session, customer, customer_headers, products, monkeypatch
):
    await _fill_cart(db_session, customer, products)
    shampoo_id = products["shampoo"].id
    real_list_items = cart_service.list_items

    async def list_then_sell_out(db, *, user_id):
        lines = await real_list_items(db, user_id=user_id)
        # Another order takes the last shampoo after the cart was loaded
        await db.execute(Product.__table__.update().where(Product.id == shampoo_id).values(stock=0))
        return lines

    monkeypatch.setattr(cart_service, "list_items", list_then_sell_out)

    resp = await client.post("/checkout", data=shipping_form(), files=proof_file(), headers=customer_headers)

    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["error"]["details"]["items"] == [{"product_id": shampoo_id, "requested": 1}]
    assert await _count(db_session, Order) == 0
    assert await _count(db_session, CartItem) == 2
    stock = dict((await db_session.execute(select(Product.name, Product.stock))).all())
    assert stock["Organic Shea Butter Hair Cream"] == 50
    assert stock["Herbal Anti-Dandruff Shampoo"] == 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_storage_failure_rolls_back(client, db_session, customer, customer_headers, products, monkeypatch):
    await _fill_cart(db_session, customer, products)

    async def broken_save(order_id, filename, data):
        raise StorageError("Could not store proof of payment. Please try again.")

    monkeypatch.setattr(storage_service, "save_proof", broken_save)

    resp = await client.post("/checkout", data=shipping_form(), files=proof_file(), headers=customer_headers)

    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert resp.json()["error"]["code"] == "storage"
    assert await _count(db_session, Order) == 0
    assert await _count(db_session, CartItem) == 2
    await db_session.refresh(products["cream"])
    assert products["cream"].stock == 50


@pytest.mark.integration
@pytest.mark.asyncio
async def test_commit_failure_removes_stored_file(db_session, customer, products, upload_dir, monkeypatch):
    await _fill_cart(db_session, customer, products)

    async def failing_commit():
        raise RuntimeError("database is locked")

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(RuntimeError):
        await checkout_service.place_order(
            db_session,
            user=customer,
            shipping=ShippingInfo(**shipping_form()),
            proof_filename="receipt.png",
            proof_content_type="image/png",
            proof_data=PNG_BYTES,
        )

    bucket = upload_dir / "payment-proofs"
    assert list(bucket.iterdir()) == []
    assert await _count(db_session, PaymentProof) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_validate_shipping_requires_address(customer):
    with pytest.raises(ValidationError) as exc_info:
        checkout_service.validate_shipping(ShippingInfo(**shipping_form(address="  ")), customer)
    assert "Address is required" in exc_info.value.detail
