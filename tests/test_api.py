"""HTTP-level tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from shop.main import create_app


@pytest.fixture
def client(database_url):
    app = create_app(database_url=database_url, redis_url=None)
    with TestClient(app) as client:
        yield client


def _create_product(client, **overrides):
    body = {
        "name": "Test Laptop",
        "description": "Gaming laptop",
        "price": 1000,
        "stock": 20,
        "category": "Electronics",
    }
    body.update(overrides)
    resp = client.post("/commands/products", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "shop-service"}


def test_create_and_list_products(client):
    product = _create_product(client, price=1299.99)

    assert product["name"] == "Test Laptop"
    assert product["price"] == 1299.99
    assert product["stock"] == 20
    assert product["category"] == "Electronics"
    assert client.get("/queries/products").json() == [product]
    assert client.get(f"/queries/products/{product['id']}").json() == product


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "x" * 51},
        {"description": ""},
        {"price": 0},
        {"price": -5},
        {"stock": -1},
        {"stock": 1.5},
        {"category": "c" * 51},
    ],
)
def test_create_product_validation(client, overrides):
    body = {"name": "Desk", "description": "Oak desk", "price": 100, "stock": 1}
    body.update(overrides)

    resp = client.post("/commands/products", json=body)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"
    assert client.get("/queries/products").json() == []


def test_restock_and_sell(client):
    product = _create_product(client, stock=5)

    restocked = client.post(f"/commands/products/{product['id']}/restock", json={"quantity": 5})
    sold = client.post(f"/commands/products/{product['id']}/sell", json={"quantity": 8})

    assert restocked.json()["stock"] == 10
    assert sold.json()["stock"] == 2


def test_sell_beyond_stock_conflicts(client):
    product = _create_product(client, stock=2)

    resp = client.post(f"/commands/products/{product['id']}/sell", json={"quantity": 3})

    assert resp.status_code == 409
    assert "Available: 2, requested: 3" in resp.json()["details"]
    assert client.get(f"/queries/products/{product['id']}").json()["stock"] == 2


def test_stock_commands_on_unknown_product(client):
    assert client.post("/commands/products/nope/restock", json={"quantity": 1}).status_code == 404
    assert client.post("/commands/products/nope/sell", json={"quantity": 1}).status_code == 404
    assert client.get("/queries/products/nope").status_code == 404


@pytest.mark.parametrize("body", [{}, {"quantity": 0}, {"quantity": -2}, {"quantity": "3"}])
def test_stock_command_validation(client, body):
    product = _create_product(client)
    resp = client.post(f"/commands/products/{product['id']}/restock", json=body)
    assert resp.status_code == 400


def test_place_order(client):
    product = _create_product(client, price=1000, stock=20)

    resp = client.post(
        "/commands/orders",
        json={
            "customerId": "customer-us-1",
            "location": "US",
            "products": [{"productId": product["id"], "quantity": 10}],
        },
    )

    assert resp.status_code == 201, resp.text
    order = resp.json()
    assert order["customerId"] == "customer-us-1"
    assert order["products"] == [
        {"productId": product["id"], "quantity": 10, "priceAtOrder": 1000.0}
    ]
    assert order["totalAmount"] == 10000.0
    assert order["status"] == "pending"
    assert client.get(f"/queries/products/{product['id']}").json()["stock"] == 10
    assert client.get("/queries/orders").json() == [order]
    assert client.get(f"/queries/orders/{order['id']}").json() == order


def test_place_order_europe_single_unit(client):
    product = _create_product(client, price=1000, stock=3, category="Books")

    resp = client.post(
        "/commands/orders",
        json={
            "customerId": "customer-eu-1",
            "location": "Europe",
            "products": [{"productId": product["id"], "quantity": 1}],
        },
    )

    assert resp.status_code == 201
    assert resp.json()["finalAmount"] == 1150.0


def test_order_with_unknown_product(client):
    product = _create_product(client, stock=5)

    resp = client.post(
        "/commands/orders",
        json={
            "customerId": "customer-us-1",
            "products": [
                {"productId": product["id"], "quantity": 1},
                {"productId": "missing", "quantity": 1},
            ],
        },
    )

    assert resp.status_code == 404
    assert client.get(f"/queries/products/{product['id']}").json()["stock"] == 5
    assert client.get("/queries/orders").json() == []


def test_order_with_insufficient_stock(client):
    product = _create_product(client, stock=1)

    resp = client.post(
        "/commands/orders",
        json={
            "customerId": "customer-us-1",
            "products": [{"productId": product["id"], "quantity": 2}],
        },
    )

    assert resp.status_code == 409
    assert resp.json()["error"] == "Insufficient stock"


@pytest.mark.parametrize(
    "body",
    [
        {"products": [{"productId": "p", "quantity": 1}]},
        {"customerId": "", "products": [{"productId": "p", "quantity": 1}]},
        {"customerId": "c"},
        {"customerId": "c", "products": []},
        {"customerId": "c", "products": [{"quantity": 1}]},
        {"customerId": "c", "products": [{"productId": "", "quantity": 1}]},
        {"customerId": "c", "products": [{"productId": "p"}]},
        {"customerId": "c", "products": [{"productId": "p", "quantity": 0}]},
        {"customerId": "c", "products": [{"productId": "p", "quantity": 2.5}]},
    ],
)
def test_order_validation(client, body):
    resp = client.post("/commands/orders", json=body)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"


def test_unknown_order(client):
    assert client.get("/queries/orders/does-not-exist").status_code == 404


def test_events_endpoint(client):
    product = _create_product(client, stock=5)
    client.post(f"/commands/products/{product['id']}/sell", json={"quantity": 1})

    all_events = client.get("/events").json()
    product_events = client.get(f"/events/{product['id']}").json()

    assert [e["event_type"] for e in all_events] == ["ProductCreated", "ProductSold"]
    assert [e["version"] for e in product_events] == [1, 2]


def test_empty_category_is_rejected(client):
    resp = client.post(
        "/commands/products",
        json={"name": "Desk", "description": "Oak desk", "price": 100, "stock": 1, "category": ""},
    )

    assert resp.status_code == 400
    assert client.get("/queries/products").json() == []


def test_category_may_be_omitted(client):
    product = _create_product(client, category=None)
    assert product["category"] is None
