# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, func
from database import Base

# Roles known to the permission table in utils/tokenJWT.py
class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"

# Represents a back-office account (admin or cashier)
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.STAFF.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
