# backend/routes/orders.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

import logging
from database import get_db
from utils.tokenJWT import get_current_user, has_permission, permission_required
from utils.audit import write_log, client_ip
from utils.errors import DomainError
from utils import checkout
from models.users import User
from models.order import Order, OrderItem, OrderStatus
from schemas.common import Envelope, Page, success
from schemas.order import OrderResponse, OrderStatusPatch, OrderItemOut, OrderCustomerOut, OrderCreatePayload

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

# Map Order model to OrderResponse schema
def _order_to_out(order: Order) -> OrderResponse:
    items: List[OrderItemOut] = []
    for it in order.items:
        product_name = it.product.name if it.product else "Deleted product"
        items.append(OrderItemOut(
            product_id=it.product_id,
            product_name=product_name,
            quantity=it.quantity,
            unit_price=it.unit_price,
            line_total=it.unit_price * it.quantity,
        ))
    customer = None
    if order.customer:
        customer = OrderCustomerOut(
            id=order.customer.id, name=order.customer.name,
            phone=order.customer.phone, is_member=order.customer.is_member,
        )
    return OrderResponse(
        id=order.id,
        code=order.code,
        status=order.status,
        payment_type=order.payment_type,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        total_amount=order.total_amount,
        voucher_code=order.voucher.code if order.voucher else None,
        staff_id=order.user_id,
        staff_name=order.user.name if order.user else None,
        customer=customer,
        created_at=order.created_at,
        items=items,
    )


# Checkout: validate the cart, decrement stock and persist the order atomically
@router.post("", response_model=Envelope[OrderResponse], status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("orders:create")),
):
    try:
        order = checkout.create_order(
            db,
            staff_user_id=current_user.id,
            items=payload.items,
            customer_id=payload.customer_id,
            customer=payload.customer,
            payment_type=payload.payment_type,
            voucher_code=payload.voucher_code,
        )
    except DomainError as e:
        write_log(
            db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
            ip=client_ip(request), meta={"reason": e.message, "items": len(payload.items)},
        )
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError:
        logger.exception("Checkout failed for user %s", current_user.id)
        raise HTTPException(status_code=500, detail="Could not create order, please try again")

    write_log(
        db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "code": order.code, "total": str(order.total_amount)},
    )
    return success(_order_to_out(order), "Order created")


# Order history, newest first (admin)
@router.get("", response_model=Envelope[Page[OrderResponse]])
def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("orders:read")),
):
    q = db.query(Order)
    if status_filter:
        q = q.filter(Order.status == status_filter)
    total = q.count()

    rows = q.options(
        joinedload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.user),
        joinedload(Order.customer),
        joinedload(Order.voucher),
    ).order_by(Order.created_at.desc(), Order.id.desc()) \
        .offset((page - 1) * page_size).limit(page_size).all()

    items = [_order_to_out(o) for o in rows]
    return success({"items": items, "total": total, "page": page, "page_size": page_size})


# Get details of a specific order (admin, or the cashier who rang it up)
@router.get("/{order_id}", response_model=Envelope[OrderResponse])
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    o = checkout.load_order(db, order_id)
    if not o or (o.user_id != current_user.id and not has_permission(current_user, "orders:read")):
        raise HTTPException(status_code=404, detail="Order not found")
    return success(_order_to_out(o))


# Manually update order status (admin); cancelling restocks the items
@router.patch("/{order_id}/status", response_model=Envelope[OrderResponse])
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("orders:write")),
):
    try:
        order = checkout.change_order_status(db, order_id, payload.status)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
        ip=client_ip(request), meta={"order_id": order.id, "new": payload.status.value})
    return success(_order_to_out(order))
