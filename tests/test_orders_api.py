# tests/test_orders_api.py

import pytest

from storefront.services.order import ORDER_TRANSITIONS, can_transition


def create_order(client, headers, items=None, **extra):
    body = dict(extra)
    if items is not None:
        body["items"] = items
    return client.post("/api/orders", json=body, headers=headers)


def test_order_prices_come_from_catalog(client, user_headers, make_product):
    kimchi = make_product(slug="kimchi", price=12000, stock=5)
    rice = make_product(slug="rice", name="쌀", price=30000, stock=5)

    response = create_order(client, user_headers, [
        {"product_id": kimchi["id"], "quantity": 1},
        {"product_id": rice["id"], "quantity": 2},
        {"product_id": kimchi["id"], "quantity": 1},
    ])

    assert response.status_code == 201, response.text
    order = response.json()
    assert order["status"] == "pending"
    assert order["payment_status"] == "unpaid"
    assert order["total_amount"] == 2 * 12000 + 2 * 30000
    assert order["order_number"].startswith("ORD-")
    assert {item["product_name"] for item in order["items"]} == {"김치", "쌀"}


def test_insufficient_stock_is_conflict(client, user_headers, make_product):
    product = make_product(stock=1)

    response = create_order(client, user_headers, [{"product_id": product["id"], "quantity": 2}])

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_inactive_product_is_rejected(client, user_headers, admin_headers, make_product):
    product = make_product()
    client.delete(f"/api/admin/products/{product['id']}", headers=admin_headers)

    response = create_order(client, user_headers, [{"product_id": product["id"], "quantity": 1}])

    assert response.status_code == 400


def test_checkout_from_cart_clears_cart(client, user_headers, make_product):
    product = make_product(price=5000, stock=10)
    client.post("/api/cart", json={"product_id": product["id"], "quantity": 3}, headers=user_headers)

    response = create_order(client, user_headers, shipping_address="서울시 강남구")

    assert response.status_code == 201, response.text
    assert response.json()["total_amount"] == 15000
    assert client.get("/api/cart", headers=user_headers).json()["items"] == []


def test_empty_cart_checkout_is_rejected(client, user_headers):
    assert create_order(client, user_headers).status_code == 400


def test_users_only_see_their_own_orders(client, user_headers, other_user_headers, make_product):
    product = make_product()
    order = create_order(client, user_headers, [{"product_id": product["id"], "quantity": 1}]).json()

    assert len(client.get("/api/orders", headers=user_headers).json()) == 1
    assert client.get("/api/orders", headers=other_user_headers).json() == []
    assert client.get(f"/api/orders/{order['id']}", headers=other_user_headers).status_code == 403


def test_orders_require_login(client):
    assert client.get("/api/orders").status_code == 401


def test_admin_status_transitions(client, user_headers, admin_headers, make_product):
    product = make_product()
    order = create_order(client, user_headers, [{"product_id": product["id"], "quantity": 1}]).json()
    url = f"/api/admin/orders/{order['id']}/status"

    skipped = client.patch(url, json={"status": "shipped"}, headers=admin_headers)
    assert skipped.status_code == 400
    assert skipped.json()["code"] == "business_rule"

    for status in ("paid", "preparing", "shipped", "delivered"):
        response = client.patch(url, json={"status": status}, headers=admin_headers)
        assert response.status_code == 200, response.text
        assert response.json()["status"] == status

    assert client.patch(url, json={"status": "cancelled"}, headers=admin_headers).status_code == 400
    assert client.patch(url, json={"status": "lost"}, headers=admin_headers).status_code == 400


def test_admin_order_list_filters_by_status(client, user_headers, admin_headers, make_product):
    product = make_product()
    first = create_order(client, user_headers, [{"product_id": product["id"], "quantity": 1}]).json()
    create_order(client, user_headers, [{"product_id": product["id"], "quantity": 1}])
    client.patch(f"/api/admin/orders/{first['id']}/status", json={"status": "cancelled"}, headers=admin_headers)

    cancelled = client.get("/api/admin/orders", params={"status": "cancelled"}, headers=admin_headers).json()

    assert [o["id"] for o in cancelled] == [first["id"]]
    assert len(client.get("/api/admin/orders", headers=admin_headers).json()) == 2
    assert client.get("/api/admin/orders", headers=user_headers).status_code == 403


@pytest.mark.parametrize("current", sorted(ORDER_TRANSITIONS))
def test_terminal_states_have_no_exits(current):
    if current in ("delivered", "cancelled", "refunded"):
        assert ORDER_TRANSITIONS[current] == set()
    assert not can_transition(current, current)
