# backend/models/voucher.py
import enum
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Enum, CheckConstraint, func
from database import Base

class VoucherType(str, enum.Enum):
    FIXED = "FIXED"
    PERCENT = "PERCENT"

# Discount code managed by admins and redeemed during checkout
class Voucher(Base):
    __tablename__ = "vouchers"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    type = Column(Enum(VoucherType), nullable=False)
    value = Column(Numeric(12, 2), CheckConstraint("value >= 0"), nullable=False)

    # Optional redemption rules
    min_purchase = Column(Numeric(12, 2), nullable=True)
    max_discount = Column(Numeric(12, 2), nullable=True)
    quota = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    # Naive UTC; an open end means unbounded on that side
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
