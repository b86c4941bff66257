"""Seed the database with the starting accounts, customers and menu.

Safe to run repeatedly: existing rows (matched on email, phone or name)
are left in place. Passwords come from SEED_ADMIN_PASSWORD and
SEED_STAFF_PASSWORD when set.
"""
import logging
import os
from decimal import Decimal
from dotenv import load_dotenv

from config import env_path
from database import SessionLocal, init_db
from models.users import User, UserRole
from models.customer import Customer
from models.product import Product, ProductCategory
from utils.hashing import get_password_hash

logger = logging.getLogger(__name__)

# Seed passwords live in the same .env as the app settings
load_dotenv(env_path)

USERS = [
    {"name": "Nur Cholis", "email": "noreply@pekongfam.com", "role": UserRole.ADMIN,
     "password_env": "SEED_ADMIN_PASSWORD", "default_password": "admin123"},
    {"name": "Bunga Dwi Sari", "email": "kasir@pekongfam.com", "role": UserRole.STAFF,
     "password_env": "SEED_STAFF_PASSWORD", "default_password": "kasir123"},
]

CUSTOMERS = [
    {"name": "Budi", "email": "budinasgortasik99@gmail.com", "phone": "08123456789", "is_member": True},
    {"name": "Joe", "email": "jujumissenglish1@yahoo.com", "phone": "08987654321", "is_member": False},
]

PRODUCTS = [
    {"name": "Kopi Espresso Gula Jawa", "description": "Espresso with palm sugar",
     "price": Decimal("33000"), "stock": 13, "category": ProductCategory.DRINK},
    {"name": "Es Teh Manis", "description": "Sweet iced tea",
     "price": Decimal("8000"), "stock": 50, "category": ProductCategory.DRINK},
    {"name": "Nasi Goreng Pekong", "description": "House fried rice with egg",
     "price": Decimal("28000"), "stock": 20, "category": ProductCategory.FOOD},
    {"name": "Pisang Goreng", "description": "Fried banana, five pieces",
     "price": Decimal("15000"), "stock": 4, "category": ProductCategory.SNACK},
    {"name": "Cuci Gelas Tumbler", "description": "Tumbler washing service",
     "price": Decimal("5000"), "stock": 100, "category": ProductCategory.SERVICE},
]


def populate_database():
    init_db()
    session = SessionLocal()
    try:
        users = {}
        for row in USERS:
            user = session.query(User).filter(User.email == row["email"]).first()
            if not user:
                password = os.getenv(row["password_env"], row["default_password"])
                user = User(
                    name=row["name"], email=row["email"], role=row["role"].value,
                    password_hash=get_password_hash(password),
                )
                session.add(user)
                session.flush()
                logger.info("Created %s user %s", user.role, user.email)
            users[row["role"]] = user

        staff = users[UserRole.STAFF]
        for row in CUSTOMERS:
            customer = session.query(Customer).filter(Customer.phone == row["phone"]).first()
            if customer:
                customer.is_member = row["is_member"]
                continue
            session.add(Customer(**row, registered_by=staff.id))

        admin = users[UserRole.ADMIN]
        for row in PRODUCTS:
            if session.query(Product).filter(Product.name == row["name"]).first():
                continue
            session.add(Product(**row, created_by=admin.id))

        session.commit()
        logger.info("Seeding finished")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    populate_database()
