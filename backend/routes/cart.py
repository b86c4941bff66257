# backend/routes/cart.py
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from utils.errors import DomainError
from utils.vouchers import compute_discount, ensure_redeemable, get_voucher_by_code
from schemas.common import Envelope, success
from schemas.cart import CartQuoteRequest, CartQuoteOut, CartQuoteLine

router = APIRouter(prefix="/cart", tags=["Cart"])


# Re-price a client-held cart against the live catalog. Nothing is reserved or written.
@router.post("/quote", response_model=Envelope[CartQuoteOut])
def quote_cart(payload: CartQuoteRequest, db: Session = Depends(get_db)):
    ids = {line.product_id for line in payload.items}
    products = {p.id: p for p in db.query(Product).filter(Product.id.in_(ids)).all()}

    lines = []
    subtotal = Decimal("0")
    requested = {}
    for line in payload.items:
        product = products.get(line.product_id)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {line.product_id} not found")

        # Repeated lines for one product draw from the same stock
        requested[product.id] = requested.get(product.id, 0) + line.quantity
        line_total = product.price * line.quantity
        subtotal += line_total
        lines.append(CartQuoteLine(
            product_id=product.id,
            name=product.name,
            quantity=line.quantity,
            unit_price=product.price,
            line_total=line_total,
            available_stock=product.stock,
            in_stock=requested[product.id] <= product.stock,
        ))

    discount = Decimal("0.00")
    voucher_code = None
    voucher_message = None
    if payload.voucher_code:
        try:
            voucher = get_voucher_by_code(db, payload.voucher_code)
            voucher_code = voucher.code
            ensure_redeemable(voucher, subtotal)
            discount = compute_discount(voucher, subtotal)
        except DomainError as e:
            voucher_message = e.message

    out = CartQuoteOut(
        items=lines,
        subtotal=subtotal,
        discount_amount=discount,
        total=subtotal - discount,
        voucher_code=voucher_code,
        voucher_message=voucher_message,
        can_checkout=all(l.in_stock for l in lines),
    )
    return success(out)
