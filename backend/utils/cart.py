# backend/utils/cart.py
"""Client-side cart as an explicit value object.

``CartState`` is immutable; every operation returns a new state, so a
cart can be serialized, stored by the client and submitted as-is.
"""
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from utils.errors import DomainError


class CartError(DomainError):
    pass


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: int
    name: str
    unit_price: Decimal
    stock: int = Field(ge=0) # Stock seen when the product was added
    quantity: int = Field(ge=1)


class CartState(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[CartLine] = Field(default_factory=list)


def _find(cart: CartState, product_id: int):
    for line in cart.items:
        if line.product_id == product_id:
            return line
    return None


def add_item(cart: CartState, product, quantity: int = 1) -> CartState:
    """Add ``quantity`` of ``product`` (anything with id, name, price, stock)."""
    if quantity < 1:
        raise CartError("Quantity must be at least 1")

    existing = _find(cart, product.id)
    wanted = quantity + (existing.quantity if existing else 0)
    if wanted > product.stock:
        raise CartError(f"Only {product.stock} of {product.name} in stock")

    line = CartLine(
        product_id=product.id,
        name=product.name,
        unit_price=Decimal(product.price),
        stock=product.stock,
        quantity=wanted,
    )
    if existing:
        items = [line if l.product_id == product.id else l for l in cart.items]
    else:
        items = [*cart.items, line]
    return CartState(items=items)


def remove_item(cart: CartState, product_id: int) -> CartState:
    return CartState(items=[l for l in cart.items if l.product_id != product_id])


def update_quantity(cart: CartState, product_id: int, quantity: int) -> CartState:
    existing = _find(cart, product_id)
    if existing is None:
        raise CartError(f"Product {product_id} is not in the cart")
    if quantity <= 0:
        return remove_item(cart, product_id)
    if quantity > existing.stock:
        raise CartError(f"Only {existing.stock} of {existing.name} in stock")

    updated = existing.model_copy(update={"quantity": quantity})
    return CartState(items=[updated if l.product_id == product_id else l for l in cart.items])


def clear_cart() -> CartState:
    return CartState()


def cart_total(cart: CartState) -> Decimal:
    return sum((l.unit_price * l.quantity for l in cart.items), Decimal("0"))


def item_count(cart: CartState) -> int:
    return sum(l.quantity for l in cart.items)


def to_checkout_items(cart: CartState) -> List[dict]:
    # Body shape expected by POST /orders and POST /cart/quote
    return [{"product_id": l.product_id, "quantity": l.quantity} for l in cart.items]
