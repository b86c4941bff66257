# backend/schemas/product.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import Optional

from models.product import ProductCategory
from schemas.common import ORMBase

# Lowest shelf price accepted by the catalog (Rupiah)
MIN_PRICE = 5000


# Shared base attributes for product entities
class ProductBase(BaseModel):
    name: str = Field(min_length=3)
    description: Optional[str] = None
    price: Decimal = Field(ge=MIN_PRICE, max_digits=12, decimal_places=2)
    stock: int = Field(ge=0)
    category: ProductCategory
    image_url: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, value):
        return value.strip() if isinstance(value, str) else value


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# PUT accepts any subset of fields, like the admin form sends them
class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=MIN_PRICE, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[ProductCategory] = None
    image_url: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProductOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    category: ProductCategory
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
