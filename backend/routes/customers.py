# backend/routes/customers.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import permission_required
from utils.audit import write_log, client_ip
from models.users import User
from models.customer import Customer
from models.order import Order
from schemas.common import Envelope, Page, success
from schemas.customer import CustomerCreate, CustomerUpdate, CustomerOut

router = APIRouter(prefix="/customers", tags=["Customers"])


def _to_out(customer: Customer, order_count: int = 0) -> CustomerOut:
    out = CustomerOut.model_validate(customer)
    out.order_count = order_count or 0
    return out

def _order_count(db: Session, customer_id: int) -> int:
    return db.query(func.count(Order.id)).filter(Order.customer_id == customer_id).scalar() or 0

# Reject a phone or email already used by another customer
def _check_unique(db: Session, phone: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
    if phone:
        q = db.query(Customer).filter(Customer.phone == phone)
        if exclude_id is not None:
            q = q.filter(Customer.id != exclude_id)
        if q.first():
            raise HTTPException(status_code=409, detail="Phone number is already registered")
    if email:
        q = db.query(Customer).filter(Customer.email == email)
        if exclude_id is not None:
            q = q.filter(Customer.id != exclude_id)
        if q.first():
            raise HTTPException(status_code=409, detail="Email is already registered")


# List customers newest first, with how many orders each has placed
@router.get("", response_model=Envelope[Page[CustomerOut]])
def list_customers(
    is_member: Optional[bool] = Query(None, description="true: members only, false: walk-ins only"),
    q: Optional[str] = Query(None, description="Search by name or phone"),
    phone: Optional[str] = Query(None, description="Exact phone lookup"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("customers:read")),
):
    query = db.query(Customer)
    if is_member is not None:
        query = query.filter(Customer.is_member.is_(is_member))
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Customer.name.ilike(like), Customer.phone.ilike(like)))
    if phone:
        query = query.filter(Customer.phone == phone.strip())

    total = query.count()

    counts = (
        db.query(Order.customer_id.label("customer_id"), func.count(Order.id).label("order_count"))
        .group_by(Order.customer_id)
        .subquery()
    )
    rows = (
        query.outerjoin(counts, counts.c.customer_id == Customer.id)
        .add_columns(counts.c.order_count)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .offset((page - 1) * page_size).limit(page_size).all()
    )
    items = [_to_out(customer, order_count) for customer, order_count in rows]
    return success({"items": items, "total": total, "page": page, "page_size": page_size})


@router.get("/{customer_id}", response_model=Envelope[CustomerOut])
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("customers:read")),
):
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return success(_to_out(customer, _order_count(db, customer.id)))


# Register a member or capture a walk-in
@router.post("", response_model=Envelope[CustomerOut], status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("customers:write")),
):
    data = payload.model_dump()
    if data["email"]:
        data["email"] = data["email"].lower()
    _check_unique(db, data["phone"], data["email"])

    customer = Customer(**data, registered_by=current_user.id)
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Phone number or email is already registered")
    db.refresh(customer)

    write_log(db, user_id=current_user.id, action="CUSTOMER_CREATE", resource="customers",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": customer.id, "is_member": customer.is_member})
    message = "Member registered" if customer.is_member else "Customer created"
    return success(_to_out(customer), message)


@router.put("/{customer_id}", response_model=Envelope[CustomerOut])
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("customers:write")),
):
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email"):
        changes["email"] = changes["email"].lower()
    _check_unique(db, changes.get("phone"), changes.get("email"), exclude_id=customer.id)

    for key, value in changes.items():
        if value is None and key in {"name", "is_member"}:
            continue
        setattr(customer, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Phone number or email is already registered")
    db.refresh(customer)

    write_log(db, user_id=current_user.id, action="CUSTOMER_UPDATE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"id": customer.id, "fields": sorted(changes)})
    return success(_to_out(customer, _order_count(db, customer.id)), "Customer updated")
