"""HTTP surface: checkout, order history, creator inbox and catalog admin."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from main import app
from shared.config.database import get_db
from shared.security import create_access_token

API_KEY = {"X-Internal-API-Key": "test-internal-key"}


def _auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


def _body(lines, **overrides) -> dict:
    body = {
        "lines": lines,
        "shipping_total": "15.00",
        "tax_total": "10.00",
        "discount_total": "0",
        "shipping_address": {
            "name": "Asha Rao",
            "street": "12 Lake Road",
            "city": "Pune",
            "state": "MH",
            "zip_code": "411001",
            "country": "IN",
        },
        "payment_method": "card",
    }
    body.update(overrides)
    return body


def _line(product, quantity=1, variant=None) -> dict:
    return {
        "product_id": str(product.id),
        "variant_id": str(variant.id) if variant else None,
        "quantity": quantity,
        "unit_price": str((variant or product).price),
    }


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def test_health_is_public(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"service": "checkout", "status": "running"}


async def test_checkout_requires_a_token(client):
    line = {"product_id": str(uuid.uuid4()), "quantity": 1, "unit_price": "1.00"}
    response = await client.post("/orders/checkout", json=_body([line]))

    assert response.status_code == 401


async def test_checkout_creates_one_order_per_creator(client, catalog):
    x = await catalog.creator("X")
    y = await catalog.creator("Y")
    vase = await catalog.product(x, price="50.00")
    print_ = await catalog.product(y, price="50.00")

    response = await client.post(
        "/orders/checkout",
        json=_body([_line(vase, 2), _line(print_)]),
        headers=_auth("buyer-1"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "2 order(s) created successfully"
    assert [(o["creator_id"], o["total"]) for o in body["orders"]] == [
        (str(x.id), "116.67"),
        (str(y.id), "58.33"),
    ]


async def test_checkout_reports_every_shortage(client, catalog):
    creator = await catalog.creator()
    lamp = await catalog.product(creator, stock=3)

    response = await client.post(
        "/orders/checkout", json=_body([_line(lamp, 5)]), headers=_auth("buyer-1")
    )

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "insufficient_stock"
    assert body["shortages"] == [
        {"product_id": str(lamp.id), "variant_id": None, "available": 3, "requested": 5}
    ]


async def test_checkout_unknown_product_is_404(client, catalog):
    creator = await catalog.creator()
    lamp = await catalog.product(creator)
    ghost = _line(lamp)
    ghost["product_id"] = str(uuid.uuid4())

    response = await client.post("/orders/checkout", json=_body([ghost]), headers=_auth("buyer-1"))

    assert response.status_code == 404
    assert response.json()["error"] == "product_not_found"


@pytest.mark.parametrize(
    "overrides",
    [
        {"lines": []},
        {"payment_method": "barter"},
        {"shipping_total": "-1"},
        {"shipping_address": {"name": "No street"}},
    ],
)
async def test_malformed_checkout_is_rejected(client, catalog, overrides):
    creator = await catalog.creator()
    lamp = await catalog.product(creator)

    body = _body([_line(lamp)])
    body.update(overrides)

    response = await client.post("/orders/checkout", json=body, headers=_auth("buyer-1"))

    assert response.status_code == 422


async def test_discount_above_the_cart_total_is_a_400(client, catalog):
    creator = await catalog.creator()
    lamp = await catalog.product(creator, price="10.00")

    response = await client.post(
        "/orders/checkout",
        json=_body([_line(lamp)], discount_total="50.00"),
        headers=_auth("buyer-1"),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


async def test_zero_quantity_is_rejected(client, catalog):
    creator = await catalog.creator()
    lamp = await catalog.product(creator)

    response = await client.post(
        "/orders/checkout", json=_body([_line(lamp, 0)]), headers=_auth("buyer-1")
    )

    assert response.status_code == 422


async def _place(client, user_id, *lines):
    response = await client.post("/orders/checkout", json=_body(list(lines)), headers=_auth(user_id))
    assert response.status_code == 200
    return response.json()["orders"]


async def test_order_history_is_paginated_newest_first(client, catalog):
    creator = await catalog.creator()
    mug = await catalog.product(creator, stock=50)
    placed = []
    for _ in range(3):
        placed += await _place(client, "buyer-1", _line(mug))
    await _place(client, "someone-else", _line(mug))

    first = await client.get("/orders", params={"limit": 2}, headers=_auth("buyer-1"))
    second = await client.get("/orders", params={"limit": 2, "page": 2}, headers=_auth("buyer-1"))

    assert first.status_code == 200
    page_one, page_two = first.json(), second.json()
    assert page_one["pagination"] == {
        "page": 1,
        "page_size": 2,
        "total_count": 3,
        "total_pages": 2,
        "has_next_page": True,
        "has_prev_page": False,
    }
    assert page_two["pagination"]["has_prev_page"] is True
    ids = [o["id"] for o in page_one["orders"] + page_two["orders"]]
    assert ids == [o["order_id"] for o in reversed(placed)]
    assert page_one["orders"][0]["items"][0]["product_id"] == str(mug.id)


async def test_order_history_filters(client, catalog):
    creator = await catalog.creator()
    mug = await catalog.product(creator, stock=50)
    await _place(client, "buyer-1", _line(mug))

    pending = await client.get("/orders", params={"status": "pending"}, headers=_auth("buyer-1"))
    shipped = await client.get("/orders", params={"status": "shipped"}, headers=_auth("buyer-1"))
    future = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
    later = await client.get("/orders", params={"date_from": future}, headers=_auth("buyer-1"))
    recent = await client.get("/orders", params={"date_range": "7d"}, headers=_auth("buyer-1"))

    assert pending.json()["pagination"]["total_count"] == 1
    assert shipped.json()["pagination"]["total_count"] == 0
    assert later.json()["pagination"]["total_count"] == 0
    assert recent.json()["pagination"]["total_count"] == 1
    assert recent.json()["filters"]["date_range"] == "7d"


async def test_order_history_rejects_bad_paging(client):
    response = await client.get("/orders", params={"page": 0}, headers=_auth("buyer-1"))

    assert response.status_code == 422


async def test_creator_sees_received_orders(client, catalog):
    creator = await catalog.creator("X", user_id="maker-1")
    other = await catalog.creator("Y")
    mine = await catalog.product(creator, stock=10)
    theirs = await catalog.product(other, stock=10)
    await _place(client, "buyer-1", _line(mine), _line(theirs))

    inbox = await client.get("/orders/creator", headers=_auth("maker-1"))
    not_a_creator = await client.get("/orders/creator", headers=_auth("buyer-1"))

    assert inbox.status_code == 200
    [order] = inbox.json()["orders"]
    assert order["creator_id"] == str(creator.id)
    assert order["user_id"] == "buyer-1"
    assert not_a_creator.status_code == 404


async def test_single_order_visible_to_buyer_and_creator_only(client, catalog):
    creator = await catalog.creator("X", user_id="maker-1")
    mug = await catalog.product(creator, stock=10)
    [placed] = await _place(client, "buyer-1", _line(mug, 2))
    path = f"/orders/{placed['order_id']}"

    as_buyer = await client.get(path, headers=_auth("buyer-1"))
    as_creator = await client.get(path, headers=_auth("maker-1"))
    as_stranger = await client.get(path, headers=_auth("stranger"))

    assert as_buyer.status_code == 200
    assert as_buyer.json()["items"][0]["quantity"] == 2
    assert as_buyer.json()["status"] == "pending"
    assert as_creator.status_code == 200
    assert as_stranger.status_code == 404


async def test_catalog_admin_requires_internal_key(client):
    response = await client.post("/catalog/creators", json={"user_id": "maker", "display_name": "M"})

    assert response.status_code == 403


async def test_catalog_admin_flow(client):
    creator = await client.post(
        "/catalog/creators", json={"user_id": "maker-9", "display_name": "Clay Co"}, headers=API_KEY
    )
    assert creator.status_code == 201
    creator_id = creator.json()["id"]

    duplicate = await client.post(
        "/catalog/creators", json={"user_id": "maker-9", "display_name": "Again"}, headers=API_KEY
    )
    assert duplicate.status_code == 409

    product = await client.post(
        "/catalog/products",
        json={"creator_id": creator_id, "name": "Bowl", "price": "24.00", "stock": 4},
        headers=API_KEY,
    )
    assert product.status_code == 201
    product_id = product.json()["id"]

    variant = await client.post(
        f"/catalog/products/{product_id}/variants",
        json={"name": "Glazed", "price": "29.00", "stock": 2},
        headers=API_KEY,
    )
    assert variant.status_code == 201

    fetched = await client.get(f"/catalog/products/{product_id}", headers=API_KEY)
    assert fetched.status_code == 200
    assert fetched.json()["stock"] == 4
    assert [v["name"] for v in fetched.json()["variants"]] == ["Glazed"]

    orphan = await client.post(
        "/catalog/products",
        json={"creator_id": str(uuid.uuid4()), "name": "Bowl", "price": "1.00"},
        headers=API_KEY,
    )
    assert orphan.status_code == 404
