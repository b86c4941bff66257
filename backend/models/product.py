# backend/models/product.py
import enum
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

class ProductCategory(str, enum.Enum):
    FOOD = "FOOD"
    DRINK = "DRINK"
    SNACK = "SNACK"
    SERVICE = "SERVICE"
    OTHER = "OTHER"

# A single catalog entry sold at the counter or shown in the storefront.
# Stock is guarded by a check constraint; checkout decrements it conditionally.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=True)

    price = Column(Numeric(12, 2), CheckConstraint("price >= 0"), nullable=False)
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)
    category = Column(Enum(ProductCategory), nullable=False, default=ProductCategory.OTHER, index=True)

    # Plain reference, uploads are handled outside this service
    image_url = Column(String, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creator = relationship("User")
