# backend/routes/vouchers.py
from decimal import Decimal
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import permission_required
from utils.audit import write_log, client_ip
from utils.errors import DomainError
from utils.vouchers import (
    compute_discount, ensure_redeemable, get_voucher_by_code, status_clause, utcnow, voucher_state,
)
from models.users import User
from models.order import Order
from models.voucher import Voucher
from schemas.common import Envelope, success
from schemas.voucher import VoucherCreate, VoucherUpdate, VoucherOut, VoucherCheckOut, check_voucher_rules

router = APIRouter(prefix="/vouchers", tags=["Vouchers"])

VoucherStatusFilter = Literal["active", "expired", "scheduled", "inactive"]


def _voucher_to_out(voucher: Voucher) -> VoucherOut:
    return VoucherOut(
        id=voucher.id,
        code=voucher.code,
        type=voucher.type,
        value=voucher.value,
        min_purchase=voucher.min_purchase,
        max_discount=voucher.max_discount,
        quota=voucher.quota,
        usage_count=voucher.usage_count or 0,
        is_active=voucher.is_active,
        start_date=voucher.start_date,
        end_date=voucher.end_date,
        created_at=voucher.created_at,
        state=voucher_state(voucher),
    )

def _get_or_404(db: Session, voucher_id: int) -> Voucher:
    voucher = db.query(Voucher).filter(Voucher.id == voucher_id).first()
    if not voucher:
        raise HTTPException(status_code=404, detail="Voucher not found")
    return voucher

def _code_taken(db: Session, code: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Voucher).filter(Voucher.code == code)
    if exclude_id is not None:
        q = q.filter(Voucher.id != exclude_id)
    return q.first() is not None


# List vouchers newest first, optionally by lifecycle state
@router.get("", response_model=Envelope[List[VoucherOut]])
def list_vouchers(
    status_filter: Optional[VoucherStatusFilter] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("vouchers:read")),
):
    query = db.query(Voucher)
    if status_filter:
        query = query.filter(status_clause(status_filter, utcnow()))
    vouchers = query.order_by(Voucher.created_at.desc(), Voucher.id.desc()).all()
    return success([_voucher_to_out(v) for v in vouchers])


# Discount preview for the till before checkout
@router.get("/check/{code}", response_model=Envelope[VoucherCheckOut])
def check_voucher(
    code: str,
    subtotal: Decimal = Query(..., ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("vouchers:read")),
):
    try:
        voucher = get_voucher_by_code(db, code)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    try:
        ensure_redeemable(voucher, subtotal)
    except DomainError as e:
        out = VoucherCheckOut(
            code=voucher.code, valid=False, subtotal=subtotal,
            discount_amount=Decimal("0.00"), total=subtotal, message=e.message,
        )
        return success(out)

    discount = compute_discount(voucher, subtotal)
    out = VoucherCheckOut(
        code=voucher.code, valid=True, subtotal=subtotal,
        discount_amount=discount, total=subtotal - discount,
    )
    return success(out)


@router.get("/{voucher_id}", response_model=Envelope[VoucherOut])
def get_voucher(
    voucher_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("vouchers:read")),
):
    return success(_voucher_to_out(_get_or_404(db, voucher_id)))


@router.post("", response_model=Envelope[VoucherOut], status_code=status.HTTP_201_CREATED)
def create_voucher(
    payload: VoucherCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("vouchers:write")),
):
    if _code_taken(db, payload.code):
        raise HTTPException(status_code=409, detail="Voucher code already exists")

    voucher = Voucher(**payload.model_dump(), usage_count=0)
    db.add(voucher)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Voucher code already exists")
    db.refresh(voucher)

    write_log(db, user_id=current_user.id, action="VOUCHER_CREATE", resource="vouchers",
              status="SUCCESS", ip=client_ip(request), meta={"id": voucher.id, "code": voucher.code})
    return success(_voucher_to_out(voucher), "Voucher created")


@router.put("/{voucher_id}", response_model=Envelope[VoucherOut])
def update_voucher(
    voucher_id: int,
    payload: VoucherUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("vouchers:write")),
):
    voucher = _get_or_404(db, voucher_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("code", "type", "value", "is_active"):
        if key in changes and changes[key] is None:
            del changes[key]

    # Re-check the cross-field rules against the merged result
    merged = {
        key: changes.get(key, getattr(voucher, key))
        for key in ("type", "value", "start_date", "end_date")
    }
    try:
        check_voucher_rules(merged["type"], merged["value"], merged["start_date"], merged["end_date"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if "code" in changes and _code_taken(db, changes["code"], exclude_id=voucher.id):
        raise HTTPException(status_code=409, detail="Voucher code already exists")

    for key, value in changes.items():
        setattr(voucher, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Voucher code already exists")
    db.refresh(voucher)

    write_log(db, user_id=current_user.id, action="VOUCHER_UPDATE", resource="vouchers",
              status="SUCCESS", ip=client_ip(request), meta={"id": voucher.id, "fields": sorted(changes)})
    return success(_voucher_to_out(voucher), "Voucher updated")


@router.delete("/{voucher_id}", response_model=Envelope)
def delete_voucher(
    voucher_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("vouchers:write")),
):
    voucher = _get_or_404(db, voucher_id)
    if db.query(Order).filter(Order.voucher_id == voucher.id).first():
        raise HTTPException(status_code=409, detail="Voucher has been redeemed; deactivate it instead")

    code = voucher.code
    db.delete(voucher)
    db.commit()
    write_log(db, user_id=current_user.id, action="VOUCHER_DELETE", resource="vouchers",
              status="SUCCESS", ip=client_ip(request), meta={"id": voucher_id, "code": code})
    return success(message="Voucher deleted")
