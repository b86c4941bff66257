# backend/utils/checkout.py
"""Checkout transaction: turn a submitted cart into a persisted order.

Everything ``create_order`` does (walk-in customer creation, stock
decrements, voucher usage, order and line item inserts) runs in the
caller's session and is committed once at the end; any failure rolls the
whole unit back, so a rejected cart never leaves partial state behind.
"""
import logging
import uuid
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from models.customer import Customer
from models.order import Order, OrderItem, OrderStatus, PaymentType
from models.product import Product
from models.voucher import Voucher
from utils.errors import (
    CustomerNotFoundError, DomainError, EmptyCartError, InsufficientStockError,
    NotFoundError, OrderStatusError, ProductNotFoundError, VoucherUnavailableError,
)
from utils.vouchers import compute_discount, ensure_redeemable, get_voucher_by_code

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {OrderStatus.CANCELLED, OrderStatus.FAILED}


def generate_order_code() -> str:
    return f"TRX-{uuid.uuid4().hex.upper()}"


def load_order(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).options(
        joinedload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.user),
        joinedload(Order.customer),
        joinedload(Order.voucher),
    ).filter(Order.id == order_id).first()


def _resolve_customer(db: Session, staff_user_id: int, customer_id, walk_in) -> Optional[Customer]:
    if customer_id is not None and walk_in is not None:
        raise DomainError("Provide either customer_id or customer details, not both")

    if customer_id is not None:
        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    if walk_in is None:
        return None

    # Returning walk-ins are matched on phone, then email
    phone = (walk_in.phone or "").strip() or None
    email = (walk_in.email or "").strip().lower() or None
    if phone:
        existing = db.query(Customer).filter(Customer.phone == phone).first()
        if existing:
            return existing
    if email:
        existing = db.query(Customer).filter(Customer.email == email).first()
        if existing:
            return existing

    customer = Customer(
        name=walk_in.name.strip(),
        phone=phone,
        email=email,
        address=walk_in.address,
        is_member=False,
        registered_by=staff_user_id,
    )
    db.add(customer)
    db.flush()
    return customer


def _reserve_stock(db: Session, product_id: int, quantity: int) -> Product:
    # populate_existing: a repeated product line must see the earlier decrement
    product = db.query(Product).filter(Product.id == product_id) \
        .with_for_update().populate_existing().first()
    if product is None:
        raise ProductNotFoundError(product_id)
    if product.stock < quantity:
        raise InsufficientStockError(product.id, product.name, quantity, product.stock)

    updated = db.query(Product).filter(
        Product.id == product_id, Product.stock >= quantity
    ).update({Product.stock: Product.stock - quantity}, synchronize_session=False)
    if updated != 1:
        db.refresh(product)
        raise InsufficientStockError(product.id, product.name, quantity, product.stock)
    return product


def _claim_voucher(db: Session, voucher: Voucher) -> None:
    claimed = db.query(Voucher).filter(
        Voucher.id == voucher.id,
        or_(Voucher.quota.is_(None), Voucher.usage_count < Voucher.quota),
    ).update({Voucher.usage_count: Voucher.usage_count + 1}, synchronize_session=False)
    if claimed != 1:
        raise VoucherUnavailableError(f"Voucher {voucher.code} quota has been used up")


def create_order(
    db: Session,
    *,
    staff_user_id: int,
    items: Iterable,
    customer_id: Optional[int] = None,
    customer=None,
    payment_type: PaymentType = PaymentType.CASH,
    voucher_code: Optional[str] = None,
) -> Order:
    """Validate the cart line by line, decrement stock and persist the order.

    ``items`` is an ordered iterable of objects with ``product_id`` and
    ``quantity``; ``customer`` is optional walk-in data (name, phone, email,
    address) used when no ``customer_id`` is given. Raises a ``DomainError``
    subclass for anything the caller can correct.
    """
    lines = list(items)
    if not lines:
        raise EmptyCartError("Cart is empty")

    try:
        buyer = _resolve_customer(db, staff_user_id, customer_id, customer)

        subtotal = Decimal("0")
        order_items = []
        for line in lines:
            if line.quantity < 1:
                raise DomainError(f"Quantity for product {line.product_id} must be at least 1")
            product = _reserve_stock(db, line.product_id, line.quantity)
            unit_price = Decimal(product.price)
            subtotal += unit_price * line.quantity
            order_items.append(OrderItem(
                product_id=product.id, quantity=line.quantity, unit_price=unit_price
            ))

        voucher = None
        discount = Decimal("0.00")
        if voucher_code:
            voucher = get_voucher_by_code(db, voucher_code, for_update=True)
            ensure_redeemable(voucher, subtotal)
            discount = compute_discount(voucher, subtotal)
            _claim_voucher(db, voucher)

        order = Order(
            code=generate_order_code(),
            user_id=staff_user_id,
            customer_id=buyer.id if buyer else None,
            voucher_id=voucher.id if voucher else None,
            subtotal=subtotal,
            discount_amount=discount,
            total_amount=subtotal - discount,
            payment_type=payment_type or PaymentType.CASH,
            status=OrderStatus.PAID,
            items=order_items,
        )
        db.add(order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Order %s created by user %s: %d line(s), total %s",
        order.code, staff_user_id, len(lines), order.total_amount,
    )
    return load_order(db, order.id)


def change_order_status(db: Session, order_id: int, new_status: OrderStatus) -> Order:
    """Move an order to ``new_status``; cancelling or failing it restocks its items."""
    try:
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if order is None:
            raise NotFoundError("Order not found")

        old_status = order.status
        if old_status in TERMINAL_STATUSES:
            raise OrderStatusError(f"Cannot change status from {old_status.value}")

        if new_status != old_status:
            if new_status in TERMINAL_STATUSES:
                for item in order.items:
                    db.query(Product).filter(Product.id == item.product_id).update(
                        {Product.stock: Product.stock + item.quantity}, synchronize_session=False
                    )
                if order.voucher_id is not None:
                    db.query(Voucher).filter(
                        Voucher.id == order.voucher_id, Voucher.usage_count > 0
                    ).update({Voucher.usage_count: Voucher.usage_count - 1}, synchronize_session=False)
            order.status = new_status
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Order %s status %s -> %s", order.code, old_status.value, new_status.value)
    return load_order(db, order_id)
