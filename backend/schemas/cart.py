from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from schemas.order import OrderItemIn


# Request schema for pricing a client-held cart
class CartQuoteRequest(BaseModel):
    items: List[OrderItemIn] = Field(min_length=1)
    voucher_code: Optional[str] = None


# Response schema for a single quoted line
class CartQuoteLine(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    available_stock: int
    in_stock: bool


# Response schema for the whole quote
class CartQuoteOut(BaseModel):
    items: List[CartQuoteLine]
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    voucher_code: Optional[str] = None
    voucher_message: Optional[str] = None
    can_checkout: bool
