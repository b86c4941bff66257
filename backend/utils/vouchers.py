# backend/utils/vouchers.py
"""Voucher rules shared by the voucher routes, the cart quote and checkout."""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from models.voucher import Voucher, VoucherType
from utils.errors import VoucherNotFoundError, VoucherUnavailableError

CENT = Decimal("0.01")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form voucher windows are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def normalize_code(code: str) -> str:
    return code.strip().upper()


# SQL filters for the status query parameter of GET /vouchers
def status_clause(status: str, now: datetime):
    if status == "active":
        return and_(
            Voucher.is_active.is_(True),
            or_(Voucher.start_date.is_(None), Voucher.start_date <= now),
            or_(Voucher.end_date.is_(None), Voucher.end_date >= now),
        )
    if status == "expired":
        return and_(Voucher.end_date.isnot(None), Voucher.end_date < now)
    if status == "scheduled":
        return and_(Voucher.start_date.isnot(None), Voucher.start_date > now)
    if status == "inactive":
        return Voucher.is_active.is_(False)
    raise ValueError(f"Unknown voucher status filter: {status}")


def voucher_state(voucher: Voucher, now: Optional[datetime] = None) -> str:
    # Same precedence as the admin badge: inactive, expired, scheduled, exhausted, active
    now = now or utcnow()
    if not voucher.is_active:
        return "inactive"
    if voucher.end_date is not None and voucher.end_date < now:
        return "expired"
    if voucher.start_date is not None and voucher.start_date > now:
        return "scheduled"
    if voucher.quota is not None and (voucher.usage_count or 0) >= voucher.quota:
        return "exhausted"
    return "active"


def compute_discount(voucher: Voucher, subtotal: Decimal) -> Decimal:
    """Discount a voucher grants on ``subtotal``; never more than the subtotal."""
    value = Decimal(voucher.value)
    if voucher.type == VoucherType.PERCENT:
        discount = subtotal * value / Decimal(100)
        if voucher.max_discount is not None and discount > Decimal(voucher.max_discount):
            discount = Decimal(voucher.max_discount)
    else:
        discount = value
    if discount > subtotal:
        discount = subtotal
    return discount.quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_redeemable(voucher: Voucher, subtotal: Decimal, now: Optional[datetime] = None) -> None:
    state = voucher_state(voucher, now)
    if state == "inactive":
        raise VoucherUnavailableError(f"Voucher {voucher.code} is not active")
    if state == "expired":
        raise VoucherUnavailableError(f"Voucher {voucher.code} has expired")
    if state == "scheduled":
        raise VoucherUnavailableError(f"Voucher {voucher.code} is not valid yet")
    if state == "exhausted":
        raise VoucherUnavailableError(f"Voucher {voucher.code} quota has been used up")
    if voucher.min_purchase is not None and subtotal < Decimal(voucher.min_purchase):
        raise VoucherUnavailableError(
            f"Voucher {voucher.code} requires a minimum purchase of {Decimal(voucher.min_purchase):.2f}"
        )


def get_voucher_by_code(db: Session, code: str, for_update: bool = False) -> Voucher:
    code = normalize_code(code)
    query = db.query(Voucher).filter(Voucher.code == code)
    if for_update:
        query = query.with_for_update()
    voucher = query.first()
    if voucher is None:
        raise VoucherNotFoundError(code)
    return voucher
