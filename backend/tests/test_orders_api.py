"""API tests for /orders: checkout over HTTP, order history and status changes."""
import logging
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from main import app
from models.order import Order
from models.voucher import VoucherType
from models.log import Log
from utils import checkout

API = "/api/v1"
ORDERS_URL = f"{API}/orders"


def _checkout(client, headers, *lines, **extra):
    payload = {"items": [{"product_id": pid, "quantity": qty} for pid, qty in lines], **extra}
    return client.post(ORDERS_URL, json=payload, headers=headers)


def test_staff_checkout_returns_created_envelope(client, staff_headers, staff, make_product):
    """201 with the success envelope and the full order in data."""
    product = make_product("Kopi Susu", price="10000", stock=5)

    r = _checkout(client, staff_headers, (product.id, 3), payment_type="CASH")

    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "success"
    order = body["data"]
    assert order["code"].startswith("TRX-")
    assert order["status"] == "PAID"
    assert order["staff_id"] == staff.id
    assert Decimal(order["total_amount"]) == Decimal("30000")
    assert order["items"][0]["product_name"] == "Kopi Susu"
    assert Decimal(order["items"][0]["line_total"]) == Decimal("30000")

    r = client.get(f"{API}/products/{product.id}")
    assert r.json()["data"]["stock"] == 2


def test_checkout_insufficient_stock_is_a_fail_envelope(client, staff_headers, db, make_product):
    product = make_product("Teh Tarik", stock=1)

    r = _checkout(client, staff_headers, (product.id, 2))

    assert r.status_code == 400
    body = r.json()
    assert body["status"] == "fail"
    assert "Teh Tarik" in body["message"]
    failed = db.query(Log).filter(Log.action == "ORDER_CREATE", Log.status == "FAIL").count()
    assert failed == 1


def test_checkout_unknown_product_is_404(client, staff_headers):
    r = _checkout(client, staff_headers, (12345, 1))
    assert r.status_code == 404
    assert r.json()["status"] == "fail"


def test_checkout_empty_items_is_validation_error(client, staff_headers):
    r = client.post(ORDERS_URL, json={"items": []}, headers=staff_headers)
    assert r.status_code == 400
    body = r.json()
    assert body["status"] == "fail"
    assert body["data"][0]["field"] == "items"


def test_checkout_zero_quantity_is_validation_error(client, staff_headers, make_product):
    product = make_product()
    r = _checkout(client, staff_headers, (product.id, 0))
    assert r.status_code == 400


def test_checkout_with_customer_id_and_walk_in_is_rejected(client, staff_headers, make_product, make_customer):
    product = make_product()
    budi = make_customer()
    r = _checkout(
        client, staff_headers, (product.id, 1),
        customer_id=budi.id, customer={"name": "Joe", "phone": "08987654321"},
    )
    assert r.status_code == 400


def test_checkout_with_walk_in_customer(client, staff_headers, make_product):
    product = make_product()
    r = _checkout(client, staff_headers, (product.id, 1), customer={"name": "Joe", "phone": "08987654321"})
    assert r.status_code == 201
    customer = r.json()["data"]["customer"]
    assert customer["name"] == "Joe"
    assert customer["is_member"] is False


def test_checkout_with_voucher(client, staff_headers, make_product, make_voucher):
    product = make_product(price="20000", stock=5)
    make_voucher("POTONG5", VoucherType.FIXED, "5000")

    r = _checkout(client, staff_headers, (product.id, 1), voucher_code="potong5")

    assert r.status_code == 201
    order = r.json()["data"]
    assert order["voucher_code"] == "POTONG5"
    assert Decimal(order["discount_amount"]) == Decimal("5000")
    assert Decimal(order["total_amount"]) == Decimal("15000")


def test_checkout_requires_token(client, make_product):
    product = make_product()
    r = _checkout(client, {}, (product.id, 1))
    assert r.status_code == 401
    assert r.json() == {"status": "fail", "message": "Not authenticated"}


def test_checkout_rejects_bad_token(client, make_product):
    product = make_product()
    r = _checkout(client, {"Authorization": "Bearer not-a-jwt"}, (product.id, 1))
    assert r.status_code == 401


def test_admin_cannot_ring_up_orders(client, admin_headers, make_product):
    product = make_product()
    r = _checkout(client, admin_headers, (product.id, 1))
    assert r.status_code == 403
    assert r.json()["status"] == "fail"


def test_staff_cannot_list_orders(client, staff_headers):
    r = client.get(ORDERS_URL, headers=staff_headers)
    assert r.status_code == 403


def test_admin_lists_orders_newest_first(client, admin_headers, staff_headers, make_product):
    product = make_product(stock=10)
    first = _checkout(client, staff_headers, (product.id, 1)).json()["data"]
    second = _checkout(client, staff_headers, (product.id, 2)).json()["data"]

    r = client.get(ORDERS_URL, headers=admin_headers)

    assert r.status_code == 200
    page = r.json()["data"]
    assert page["total"] == 2
    assert [o["id"] for o in page["items"]] == [second["id"], first["id"]]


def test_staff_sees_own_order_only(client, staff_headers, other_staff_headers, admin_headers, make_product):
    product = make_product()
    order = _checkout(client, staff_headers, (product.id, 1)).json()["data"]

    assert client.get(f"{ORDERS_URL}/{order['id']}", headers=staff_headers).status_code == 200
    assert client.get(f"{ORDERS_URL}/{order['id']}", headers=other_staff_headers).status_code == 404
    assert client.get(f"{ORDERS_URL}/{order['id']}", headers=admin_headers).status_code == 200


def test_admin_cancels_order_and_stock_returns(client, admin_headers, staff_headers, make_product):
    product = make_product(stock=5)
    order = _checkout(client, staff_headers, (product.id, 3)).json()["data"]

    r = client.patch(f"{ORDERS_URL}/{order['id']}/status", json={"status": "CANCELLED"}, headers=admin_headers)

    assert r.status_code == 200
    assert r.json()["data"]["status"] == "CANCELLED"
    assert client.get(f"{API}/products/{product.id}").json()["data"]["stock"] == 5

    r = client.patch(f"{ORDERS_URL}/{order['id']}/status", json={"status": "PAID"}, headers=admin_headers)
    assert r.status_code == 400

    r = client.get(ORDERS_URL, params={"status": "CANCELLED"}, headers=admin_headers)
    assert r.json()["data"]["total"] == 1


def test_status_change_on_missing_order_is_404(client, admin_headers):
    r = client.patch(f"{ORDERS_URL}/999/status", json={"status": "CANCELLED"}, headers=admin_headers)
    assert r.status_code == 404


def test_store_failure_mid_checkout_is_an_error_envelope(client, staff_headers, db, make_product, monkeypatch):
    """A database error after stock was reserved: 500 error envelope, nothing persisted."""
    product = make_product(stock=5)

    def broken_code():
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(checkout, "generate_order_code", broken_code)
    r = _checkout(client, staff_headers, (product.id, 3))

    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "Could not create order, please try again"}
    db.refresh(product)
    assert product.stock == 5
    assert db.query(Order).count() == 0


def test_unhandled_error_is_generic_500_and_still_access_logged(staff_headers, make_product, monkeypatch, caplog):
    product = make_product(stock=5)

    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(checkout, "create_order", explode)
    caplog.set_level(logging.INFO, logger="pekong")
    with TestClient(app, raise_server_exceptions=False) as c:
        r = _checkout(c, staff_headers, (product.id, 1))

    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "Internal server error"}
    access = [rec.getMessage() for rec in caplog.records if rec.name == "pekong" and "/orders" in rec.getMessage()]
    assert any("POST /api/v1/orders -> 500" in line for line in access)
