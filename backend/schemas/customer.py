# backend/schemas/customer.py
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from schemas.common import ORMBase


def _clean(value):
    # Stored trimmed so phone lookups and uniqueness checks compare like with like;
    # the POS forms send "" for untouched optional inputs
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return value


class CustomerBase(BaseModel):
    name: str = Field(min_length=3)
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = None

    @field_validator("phone", "email", "address", mode="before")
    @classmethod
    def trim_optional(cls, value):
        return _clean(value)


# Member registration or explicit walk-in capture by staff
class CustomerCreate(CustomerBase):
    is_member: bool = False


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3)
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    is_member: Optional[bool] = None

    @field_validator("phone", "email", "address", mode="before")
    @classmethod
    def trim_optional(cls, value):
        return _clean(value)


# Walk-in details submitted together with an order
class WalkInCustomer(CustomerBase):
    pass


class CustomerOut(ORMBase):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    is_member: bool
    created_at: Optional[datetime] = None
    order_count: int = 0
