# tests/test_products_cart_api.py


def test_public_catalog_lists_active_products(client, admin_headers, make_product):
    make_product(slug="kimchi", name="배추김치", category="food")
    make_product(slug="tea", name="녹차", category="drink")
    hidden = make_product(slug="old", name="단종 상품")
    client.delete(f"/api/admin/products/{hidden['id']}", headers=admin_headers)

    listing = client.get("/api/products").json()
    assert listing["total"] == 2
    assert {p["slug"] for p in listing["items"]} == {"kimchi", "tea"}

    assert client.get("/api/products", params={"category": "drink"}).json()["total"] == 1
    assert client.get("/api/products", params={"q": "김치"}).json()["items"][0]["slug"] == "kimchi"
    assert client.get("/api/admin/products", headers=admin_headers).json()["total"] == 3


def test_product_detail_by_slug_and_language(client, make_product):
    product = make_product(slug="kimchi", translations={"en": {"name": "Kimchi", "description": "Fermented"}})

    assert client.get("/api/products/kimchi").json()["id"] == product["id"]
    localized = client.get(f"/api/products/{product['id']}", params={"language": "en"}).json()
    assert localized["name"] == "Kimchi"
    assert client.get("/api/products/unknown").status_code == 404


def test_duplicate_slug_is_conflict(client, admin_headers, make_product):
    make_product(slug="kimchi")

    response = client.post(
        "/api/admin/products", json={"slug": "kimchi", "name": "또 김치", "price": 1000}, headers=admin_headers
    )

    assert response.status_code == 409


def test_product_admin_requires_admin(client, user_headers):
    response = client.post("/api/admin/products", json={"slug": "x", "name": "x", "price": 1}, headers=user_headers)
    assert response.status_code == 403


def test_stock_adjustment_broadcasts_inventory(client, admin_headers, make_product):
    product = make_product(stock=3)
    url = f"/api/admin/products/{product['id']}/stock"

    response = client.patch(url, json={"delta": 4, "reason": "입고"}, headers=admin_headers)
    assert response.json()["stock"] == 7

    assert client.patch(url, json={"delta": -10}, headers=admin_headers).status_code == 400
    event = client.app.state.events.recent_events(1)[0]
    assert event["type"] == "inventory-update"
    assert event["data"]["stock"] == 7


def test_cart_merges_and_totals(client, user_headers, make_product):
    kimchi = make_product(slug="kimchi", price=12000, stock=10)
    tea = make_product(slug="tea", name="녹차", price=3000, stock=10)

    client.post("/api/cart", json={"product_id": kimchi["id"], "quantity": 1}, headers=user_headers)
    client.post("/api/cart", json={"product_id": kimchi["id"], "quantity": 2}, headers=user_headers)
    cart = client.post("/api/cart", json={"product_id": tea["id"]}, headers=user_headers).json()

    assert cart["total_quantity"] == 4
    assert cart["total_amount"] == 3 * 12000 + 3000
    assert [line["quantity"] for line in cart["items"]] == [3, 1]


def test_cart_respects_stock(client, user_headers, make_product):
    product = make_product(stock=2)

    response = client.post("/api/cart", json={"product_id": product["id"], "quantity": 3}, headers=user_headers)
    assert response.status_code == 409

    client.post("/api/cart", json={"product_id": product["id"], "quantity": 1}, headers=user_headers)
    assert client.patch(f"/api/cart/{product['id']}", json={"quantity": 5}, headers=user_headers).status_code == 409


def test_cart_update_remove_and_clear(client, user_headers, make_product):
    first = make_product(slug="a", price=1000)
    second = make_product(slug="b", price=2000)
    client.post("/api/cart", json={"product_id": first["id"]}, headers=user_headers)
    client.post("/api/cart", json={"product_id": second["id"]}, headers=user_headers)

    updated = client.patch(f"/api/cart/{first['id']}", json={"quantity": 4}, headers=user_headers).json()
    assert updated["total_amount"] == 4 * 1000 + 2000

    removed = client.delete(f"/api/cart/{second['id']}", headers=user_headers).json()
    assert [line["product_id"] for line in removed["items"]] == [first["id"]]
    assert client.delete(f"/api/cart/{second['id']}", headers=user_headers).status_code == 404

    assert client.delete("/api/cart", headers=user_headers).status_code == 204
    assert client.get("/api/cart", headers=user_headers).json()["total_amount"] == 0


def test_register_login_and_me(client):
    assert client.post("/api/auth/register", json={"login": "kim", "password": "pw1234"}).status_code == 201
    assert client.post("/api/auth/register", json={"login": "kim", "password": "pw1234"}).status_code == 409

    bad = client.post("/api/auth/token", data={"username": "kim", "password": "wrong"})
    assert bad.status_code == 401

    good = client.post("/api/auth/token", data={"username": "kim", "password": "pw1234"})
    assert good.status_code == 200
    assert client.cookies.get("auth-token")

    # 쿠키만으로도 인증된다
    me = client.get("/api/auth/me")
    assert me.json()["login"] == "kim"
    assert me.json()["is_admin"] is False


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok", "database": True}


def test_admin_dashboard_and_recent_events(client, admin_headers, user_headers, make_product):
    product = make_product(slug="low", stock=2)
    client.post("/api/orders", json={"items": [{"product_id": product["id"], "quantity": 1}]}, headers=user_headers)

    dashboard = client.get("/api/admin/dashboard", headers=admin_headers).json()
    assert dashboard["ordersByStatus"] == {"pending": 1}
    assert dashboard["paidRevenue"] == 0
    assert dashboard["productCount"] == 1
    assert [p["id"] for p in dashboard["lowStockProducts"]] == [product["id"]]

    recent = client.get("/api/admin/events/recent", params={"limit": 5}, headers=admin_headers).json()
    assert recent["events"][-1]["type"] == "order-update"
    assert recent["clients"] == 0
