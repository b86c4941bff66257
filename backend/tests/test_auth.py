"""Login, token handling, account registration and the audit log."""
from datetime import timedelta

from utils.tokenJWT import ROLE_PERMISSIONS, create_access_token

API = "/api/v1"
PASSWORD = "rahasia123"


def test_login_returns_token_and_user(client, staff):
    r = client.post(f"{API}/auth/login", json={"email": "KASIR@pekong.id", "password": PASSWORD})

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "kasir@pekong.id"
    assert data["user"]["role"] == "STAFF"
    assert "password_hash" not in data["user"]

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.json()["data"]["id"] == staff.id


def test_wrong_password_is_401_and_audited(client, admin, admin_headers):
    r = client.post(f"{API}/auth/login", json={"email": "admin@pekong.id", "password": "salah-sandi"})
    assert r.status_code == 401
    assert r.json() == {"status": "fail", "message": "Invalid email or password"}

    logs = client.get(f"{API}/logs", params={"action": "LOGIN", "status": "fail"}, headers=admin_headers)
    entries = logs.json()["data"]["items"]
    assert len(entries) == 1
    assert entries[0]["user_email"] == "admin@pekong.id"


def test_expired_token_is_rejected(client, staff):
    token = create_access_token({"sub": staff.email}, expires_delta=timedelta(minutes=-1))
    r = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_token_for_deleted_account_is_rejected(client):
    token = create_access_token({"sub": "ghost@pekong.id"})
    r = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_admin_registers_staff(client, admin_headers):
    payload = {"name": "Rina", "email": "Rina@Pekong.id", "password": "kasir123", "role": "STAFF"}

    r = client.post(f"{API}/auth/register", json=payload, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["data"]["email"] == "rina@pekong.id"

    again = client.post(f"{API}/auth/register", json=payload, headers=admin_headers)
    assert again.status_code == 409

    login = client.post(f"{API}/auth/login", json={"email": "rina@pekong.id", "password": "kasir123"})
    assert login.status_code == 200


def test_staff_cannot_register_accounts(client, staff_headers):
    payload = {"name": "Rina", "email": "rina@pekong.id", "password": "kasir123"}
    assert client.post(f"{API}/auth/register", json=payload, headers=staff_headers).status_code == 403


def test_logs_are_admin_only(client, staff_headers):
    assert client.get(f"{API}/logs", headers=staff_headers).status_code == 403


def test_roles_have_disjoint_order_capabilities():
    assert "orders:create" in ROLE_PERMISSIONS["STAFF"]
    assert "orders:create" not in ROLE_PERMISSIONS["ADMIN"]
    assert "orders:read" not in ROLE_PERMISSIONS["STAFF"]


def test_health_check(client):
    assert client.get("/").json()["status"] == "success"


def test_register_rejects_passwords_bcrypt_cannot_hash(client, admin_headers):
    """Over 72 bytes is a 400, whether counted in characters or in UTF-8 bytes."""
    for password in ("a" * 80, "é" * 40):
        payload = {"name": "Rina", "email": "rina@pekong.id", "password": password}
        r = client.post(f"{API}/auth/register", json=payload, headers=admin_headers)
        assert r.status_code == 400
        assert r.json()["data"][0]["field"] == "password"
