"""Tests for the checkout and payment webhook endpoints."""
import pytest

from factories import (
    auth_headers,
    captured_event,
    create_product,
    create_user,
    fetch_earnings,
    fetch_purchases,
    sign_payload,
)


@pytest.fixture
async def marketplace(test_db):
    seller = await create_user(test_db, name="Seller", email="seller@example.com")
    buyer = await create_user(test_db, name="Buyer", email="buyer@example.com")
    paid = await create_product(test_db, seller.uuid, price="100.00", short_code="PAID22", title="Thermodynamics")
    free = await create_product(test_db, seller.uuid, price="0.00", short_code="FREE22", title="Syllabus")
    return {
        "seller_id": seller.uuid,
        "buyer_id": buyer.uuid,
        "paid_id": paid.uuid,
        "free_id": free.uuid,
    }


@pytest.mark.asyncio
async def test_create_order_paid_product(client, test_db, gateway, marketplace):
    response = await client.post(
        "/api/payment/create-order",
        json={"product_id": marketplace["paid_id"]},
        headers=auth_headers(marketplace["buyer_id"]),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["free"] is False
    assert data["order_id"] == "pi_test_1"
    assert data["amount"] == 10000
    assert data["currency"] == "usd"
    assert data["key"] == "pk_test"
    assert len(gateway.calls) == 1


@pytest.mark.asyncio
async def test_create_order_free_product(client, test_db, gateway, marketplace):
    response = await client.post(
        "/api/payment/create-order",
        json={"product_id": marketplace["free_id"]},
        headers=auth_headers(marketplace["buyer_id"]),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["free"] is True
    assert "order_id" not in data
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_create_order_errors(client, test_db, marketplace):
    buyer_headers = auth_headers(marketplace["buyer_id"])

    # Own product
    response = await client.post(
        "/api/payment/create-order",
        json={"product_id": marketplace["paid_id"]},
        headers=auth_headers(marketplace["seller_id"]),
    )
    assert response.status_code == 400
    assert "own product" in response.json()["detail"]

    # Unknown product
    response = await client.post(
        "/api/payment/create-order",
        json={"product_id": "00000000-0000-0000-0000-000000000000"},
        headers=buyer_headers,
    )
    assert response.status_code == 404

    # Not a UUID
    response = await client.post(
        "/api/payment/create-order",
        json={"product_id": "nonexistent"},
        headers=buyer_headers,
    )
    assert response.status_code == 422

    # Already owned
    await client.post("/api/payment/create-order", json={"product_id": marketplace["free_id"]}, headers=buyer_headers)
    response = await client.post(
        "/api/payment/create-order",
        json={"product_id": marketplace["free_id"]},
        headers=buyer_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_order_requires_auth(client, marketplace):
    response = await client.post("/api/payment/create-order", json={"product_id": marketplace["paid_id"]})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_checkout_to_settlement_flow(client, test_db, marketplace):
    """Create order -> signed webhook -> purchase paid, earnings visible to both sides."""
    buyer_headers = auth_headers(marketplace["buyer_id"])
    order = (await client.post(
        "/api/payment/create-order",
        json={"product_id": marketplace["paid_id"]},
        headers=buyer_headers,
    )).json()

    library = (await client.get("/api/purchases/my", headers=buyer_headers)).json()
    assert library[0]["status"] == "pending"

    body = captured_event(order["order_id"], charge_id="ch_live_1")
    response = await client.post(
        "/api/payment/webhook",
        content=body,
        headers={"Stripe-Signature": sign_payload(body), "Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json() == {"status": "success", "purchase_id": order["purchase_id"]}

    # Redelivery
    response = await client.post(
        "/api/payment/webhook",
        content=body,
        headers={"Stripe-Signature": sign_payload(body), "Content-Type": "application/json"},
    )
    assert response.json() == {"status": "already_processed"}

    library = (await client.get("/api/purchases/my", headers=buyer_headers)).json()
    assert len(library) == 1
    assert library[0]["status"] == "paid"
    assert library[0]["title"] == "Thermodynamics"
    assert library[0]["seller_name"] == "Seller"

    earnings = (await client.get("/api/purchases/earnings", headers=auth_headers(marketplace["seller_id"]))).json()
    assert earnings["sales_count"] == 1
    assert float(earnings["total_earned"]) == 90.0
    assert float(earnings["total_platform_fee"]) == 10.0
    item = earnings["items"][0]
    assert item["product_title"] == "Thermodynamics"
    assert float(item["total_amount"]) == 100.0
    assert float(item["platform_fee"]) == 10.0
    assert float(item["seller_amount"]) == 90.0

    assert len(await fetch_earnings(test_db)) == 1
    purchases = await fetch_purchases(test_db, marketplace["buyer_id"], marketplace["paid_id"])
    assert purchases[0].gateway_payment_id == "ch_live_1"


@pytest.mark.asyncio
async def test_webhook_missing_signature(client, marketplace):
    response = await client.post("/api/payment/webhook", content=captured_event("pi_test_1"))
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing signature header"


@pytest.mark.asyncio
async def test_webhook_invalid_signature_reveals_nothing(client, test_db, marketplace):
    """Known and unknown orders fail identically when the signature is wrong."""
    order = (await client.post(
        "/api/payment/create-order",
        json={"product_id": marketplace["paid_id"]},
        headers=auth_headers(marketplace["buyer_id"]),
    )).json()

    details = []
    for order_id in (order["order_id"], "pi_unknown"):
        body = captured_event(order_id)
        response = await client.post(
            "/api/payment/webhook",
            content=body,
            headers={"Stripe-Signature": sign_payload(body, secret="whsec_wrong")},
        )
        assert response.status_code == 400
        details.append(response.json()["detail"])

    assert details[0] == details[1] == "Invalid webhook signature"
    purchases = await fetch_purchases(test_db, marketplace["buyer_id"], marketplace["paid_id"])
    assert purchases[0].status == "pending"


@pytest.mark.asyncio
async def test_webhook_ignores_other_events(client, marketplace):
    body = captured_event("pi_test_1", event_type="charge.refunded")
    response = await client.post("/api/payment/webhook", content=body, headers={"Stripe-Signature": sign_payload(body)})

    assert response.status_code == 200
    assert response.json() == {"status": "ignored", "event": "charge.refunded"}


@pytest.mark.asyncio
async def test_earnings_empty_for_new_seller(client, marketplace):
    response = await client.get("/api/purchases/earnings", headers=auth_headers(marketplace["seller_id"]))

    assert response.status_code == 200
    data = response.json()
    assert data["sales_count"] == 0
    assert data["items"] == []
    assert float(data["total_earned"]) == 0.0
