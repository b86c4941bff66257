# Point the app at a throwaway SQLite file before any backend module reads settings
import os
import tempfile
from pathlib import Path

_DB_DIR = Path(tempfile.mkdtemp(prefix="pekong-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'pos.db'}"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.customer import Customer
from models.product import Product, ProductCategory
from models.users import User, UserRole
from models.voucher import Voucher, VoucherType
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token


PASSWORD = "rahasia123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _make_user(db, name, email, role):
    user = User(name=name, email=email, password_hash=PASSWORD_HASH, role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _headers(user):
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return _make_user(db, "Nur Cholis", "admin@pekong.id", UserRole.ADMIN)


@pytest.fixture
def staff(db):
    return _make_user(db, "Bunga Dwi Sari", "kasir@pekong.id", UserRole.STAFF)


@pytest.fixture
def other_staff(db):
    return _make_user(db, "Rudi Hartono", "kasir2@pekong.id", UserRole.STAFF)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def staff_headers(staff):
    return _headers(staff)


@pytest.fixture
def other_staff_headers(other_staff):
    return _headers(other_staff)


@pytest.fixture
def make_product(db):
    """Factory for catalog rows; returns the committed Product."""
    counter = {"n": 0}

    def _make(name=None, price="10000", stock=5, category=ProductCategory.FOOD):
        counter["n"] += 1
        product = Product(
            name=name or f"Menu Item {counter['n']}",
            price=Decimal(price),
            stock=stock,
            category=category,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_voucher(db):
    def _make(code="HEMAT10", type=VoucherType.PERCENT, value="10", **fields):
        voucher = Voucher(code=code, type=type, value=Decimal(value), usage_count=0, **fields)
        db.add(voucher)
        db.commit()
        db.refresh(voucher)
        return voucher

    return _make


@pytest.fixture
def make_customer(db):
    def _make(name="Budi", phone="08123456789", email=None, is_member=True):
        customer = Customer(name=name, phone=phone, email=email, is_member=is_member)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make
