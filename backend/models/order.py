# backend/models/order.py
import enum
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"

class PaymentType(str, enum.Enum):
    CASH = "CASH"
    QRIS = "QRIS"
    TRANSFER = "TRANSFER"
    GOPAY = "GOPAY"
    DANA = "DANA"
    MBANKING = "MBANKING"

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False) # Cashier who rang it up
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    voucher_id = Column(Integer, ForeignKey("vouchers.id"), nullable=True)

    # total_amount = subtotal - discount_amount, written only by checkout
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)

    payment_type = Column(Enum(PaymentType), nullable=False, default=PaymentType.CASH)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PAID, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    user = relationship("User")
    customer = relationship("Customer", back_populates="orders")
    voucher = relationship("Voucher")

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False) # Price captured at time of sale

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
