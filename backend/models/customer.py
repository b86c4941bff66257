# backend/models/customer.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base

# A shopper known to the till: registered member or walk-in captured at checkout
class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, unique=True, nullable=True, index=True)
    email = Column(String, unique=True, nullable=True)
    address = Column(String, nullable=True)
    is_member = Column(Boolean, nullable=False, default=False, index=True)

    registered_by = Column(Integer, ForeignKey("users.id"), nullable=True) # Staff who captured the record
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    orders = relationship("Order", back_populates="customer")
    registrar = relationship("User")
