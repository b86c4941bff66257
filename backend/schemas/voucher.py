# backend/schemas/voucher.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional

from models.voucher import VoucherType
from utils.vouchers import normalize_code, to_naive_utc


def check_voucher_rules(type_, value, start_date, end_date):
    """Cross-field rules, shared by create and by update after merging."""
    if type_ == VoucherType.PERCENT and value is not None and Decimal(value) > 100:
        raise ValueError("Percent discount cannot exceed 100")
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValueError("end_date must not be before start_date")


class VoucherCreate(BaseModel):
    code: str = Field(min_length=3, max_length=32)
    type: VoucherType
    value: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    min_purchase: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    max_discount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    quota: Optional[int] = Field(None, ge=0)
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return normalize_code(value)

    @field_validator("start_date", "end_date")
    @classmethod
    def as_naive_utc(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def rules(self):
        check_voucher_rules(self.type, self.value, self.start_date, self.end_date)
        return self


# Partial update; cross-field rules are re-checked against the stored voucher
class VoucherUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=3, max_length=32)
    type: Optional[VoucherType] = None
    value: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    min_purchase: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    max_discount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    quota: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, value):
        return normalize_code(value) if value is not None else value

    @field_validator("start_date", "end_date")
    @classmethod
    def as_naive_utc(cls, value):
        return to_naive_utc(value)


class VoucherOut(BaseModel):
    id: int
    code: str
    type: VoucherType
    value: Decimal
    min_purchase: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    quota: Optional[int] = None
    usage_count: int
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    state: str # active / inactive / expired / scheduled / exhausted


# Discount preview for a code against a cart subtotal
class VoucherCheckOut(BaseModel):
    code: str
    valid: bool
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    message: Optional[str] = None
