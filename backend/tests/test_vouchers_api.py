"""API tests for /vouchers and the discount rules behind them."""
from datetime import timedelta
from decimal import Decimal

from models.voucher import Voucher, VoucherType
from utils.vouchers import compute_discount, utcnow

API = "/api/v1"
VOUCHERS_URL = f"{API}/vouchers"


def test_admin_creates_voucher(client, admin_headers):
    payload = {"code": " merdeka17 ", "type": "PERCENT", "value": "17", "max_discount": "17000", "quota": 100}

    r = client.post(VOUCHERS_URL, json=payload, headers=admin_headers)

    assert r.status_code == 201
    data = r.json()["data"]
    assert data["code"] == "MERDEKA17"
    assert data["usage_count"] == 0
    assert data["state"] == "active"


def test_percent_over_100_is_rejected(client, admin_headers):
    r = client.post(VOUCHERS_URL, json={"code": "RUGI", "type": "PERCENT", "value": "150"}, headers=admin_headers)
    assert r.status_code == 400
    assert "Percent discount cannot exceed 100" in r.json()["message"]


def test_end_before_start_is_rejected(client, admin_headers):
    payload = {
        "code": "MUNDUR", "type": "FIXED", "value": "1000",
        "start_date": "2026-02-01T00:00:00", "end_date": "2026-01-01T00:00:00",
    }
    assert client.post(VOUCHERS_URL, json=payload, headers=admin_headers).status_code == 400


def test_duplicate_code_conflicts(client, admin_headers, make_voucher):
    make_voucher("HEMAT10")
    r = client.post(VOUCHERS_URL, json={"code": "hemat10", "type": "FIXED", "value": "1000"}, headers=admin_headers)
    assert r.status_code == 409


def test_staff_reads_but_cannot_write(client, staff_headers, make_voucher):
    make_voucher("HEMAT10")
    assert client.get(VOUCHERS_URL, headers=staff_headers).status_code == 200
    r = client.post(VOUCHERS_URL, json={"code": "STAF", "type": "FIXED", "value": "1000"}, headers=staff_headers)
    assert r.status_code == 403


def test_status_filter(client, admin_headers, make_voucher):
    now = utcnow()
    make_voucher("AKTIF")
    make_voucher("LEWAT", end_date=now - timedelta(days=1))
    make_voucher("NANTI", start_date=now + timedelta(days=1))
    make_voucher("MATI", is_active=False)

    def codes(status):
        r = client.get(VOUCHERS_URL, params={"status": status}, headers=admin_headers)
        return {v["code"] for v in r.json()["data"]}

    assert codes("active") == {"AKTIF"}
    assert codes("expired") == {"LEWAT"}
    assert codes("scheduled") == {"NANTI"}
    assert codes("inactive") == {"MATI"}
    assert client.get(VOUCHERS_URL, params={"status": "bogus"}, headers=admin_headers).status_code == 400


def test_check_endpoint(client, staff_headers, make_voucher):
    make_voucher("HEMAT10", VoucherType.PERCENT, "10", min_purchase=Decimal("20000"))

    ok = client.get(f"{VOUCHERS_URL}/check/hemat10", params={"subtotal": "30000"}, headers=staff_headers).json()["data"]
    assert ok["valid"] is True
    assert Decimal(ok["discount_amount"]) == Decimal("3000")
    assert Decimal(ok["total"]) == Decimal("27000")

    low = client.get(f"{VOUCHERS_URL}/check/HEMAT10", params={"subtotal": "10000"}, headers=staff_headers).json()["data"]
    assert low["valid"] is False
    assert "minimum purchase" in low["message"]

    missing = client.get(f"{VOUCHERS_URL}/check/NOPE", params={"subtotal": "10000"}, headers=staff_headers)
    assert missing.status_code == 404


def test_update_rechecks_merged_rules(client, admin_headers, make_voucher):
    voucher = make_voucher("POTONG", VoucherType.FIXED, "150")

    r = client.put(f"{VOUCHERS_URL}/{voucher.id}", json={"type": "PERCENT"}, headers=admin_headers)
    assert r.status_code == 400

    r = client.put(f"{VOUCHERS_URL}/{voucher.id}", json={"value": "50", "type": "PERCENT"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["type"] == "PERCENT"


def test_redeemed_voucher_cannot_be_deleted(client, admin_headers, staff_headers, make_voucher, make_product):
    unused = make_voucher("KOSONG", VoucherType.FIXED, "1000")
    used = make_voucher("TERPAKAI", VoucherType.FIXED, "1000")
    product = make_product(price="10000")
    client.post(f"{API}/orders", json={"items": [{"product_id": product.id, "quantity": 1}], "voucher_code": "TERPAKAI"},
                headers=staff_headers)

    assert client.delete(f"{VOUCHERS_URL}/{used.id}", headers=admin_headers).status_code == 409
    assert client.delete(f"{VOUCHERS_URL}/{unused.id}", headers=admin_headers).status_code == 200


def test_compute_discount_rounds_to_cents():
    voucher = Voucher(code="SEPERTIGA", type=VoucherType.PERCENT, value=Decimal("33.33"))
    assert compute_discount(voucher, Decimal("10000")) == Decimal("3333.00")
    assert compute_discount(voucher, Decimal("10.01")) == Decimal("3.34")
