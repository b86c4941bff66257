from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from models.order import OrderStatus, PaymentType
from schemas.customer import WalkInCustomer


# One cart line as submitted by the till
class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


# Checkout request: a member by id, or walk-in details, or nobody
class OrderCreatePayload(BaseModel):
    customer_id: Optional[int] = None
    customer: Optional[WalkInCustomer] = None
    items: List[OrderItemIn] = Field(min_length=1)
    payment_type: PaymentType = PaymentType.CASH
    voucher_code: Optional[str] = None

    @model_validator(mode="after")
    def one_customer_source(self):
        if self.customer_id is not None and self.customer is not None:
            raise ValueError("Provide either customer_id or customer, not both")
        return self


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderCustomerOut(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    is_member: bool


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    code: str
    status: OrderStatus
    payment_type: PaymentType
    subtotal: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    voucher_code: Optional[str] = None
    staff_id: int
    staff_name: Optional[str] = None
    customer: Optional[OrderCustomerOut] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus
