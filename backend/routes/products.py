# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import logging
from config import settings
from database import get_db
from utils.tokenJWT import permission_required
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product, ProductCategory
from models.order import OrderItem
from schemas.common import Envelope, Page, success
import schemas.product as product_schemas

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger(__name__)

# ---- HELPERS ----
def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Product).filter(func.lower(Product.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    return db.query(q.exists()).scalar()

def _get_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# =========================
# LISTING (storefront + till)
# =========================
@router.get("", response_model=Envelope[Page[product_schemas.ProductOut]])
def list_products(
    q: Optional[str] = Query(None, description="Search by name"),
    category: Optional[ProductCategory] = Query(None),
    low_stock: bool = Query(False, description="Only products at or below the low-stock threshold"),
    in_stock: bool = Query(False, description="Hide sold-out products"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(Product)

    if q: query = query.filter(Product.name.ilike(f"%{q}%"))
    if category: query = query.filter(Product.category == category)
    if low_stock: query = query.filter(Product.stock <= settings.LOW_STOCK_THRESHOLD)
    if in_stock: query = query.filter(Product.stock > 0)

    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    total = query.count()
    items: List[Product] = query.offset((page - 1) * page_size).limit(page_size).all()
    serialized = [product_schemas.ProductOut.model_validate(p) for p in items]

    return success({"items": serialized, "total": total, "page": page, "page_size": page_size})


@router.get("/categories", response_model=Envelope[List[str]])
def get_product_categories():
    return success([c.value for c in ProductCategory])


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=Envelope[product_schemas.ProductOut])
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = _get_or_404(db, product_id)
    return success(product_schemas.ProductOut.model_validate(product))


# =========================
# CREATE
# =========================
@router.post("", response_model=Envelope[product_schemas.ProductOut], status_code=status.HTTP_201_CREATED)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("products:write")),
):
    if _name_taken(db, payload.name):
        raise HTTPException(status_code=409, detail="Product name already exists")

    new_product = Product(**payload.model_dump(), created_by=current_user.id)
    db.add(new_product)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Product name already exists")
    db.refresh(new_product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": new_product.id, "name": new_product.name}
    )
    return success(product_schemas.ProductOut.model_validate(new_product), "Product created")


# =========================
# UPDATE (partial PUT)
# =========================
@router.put("/{product_id}", response_model=Envelope[product_schemas.ProductOut])
def update_product(
    product_id: int,
    updated_data: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("products:write")),
):
    product = _get_or_404(db, product_id)
    changes = updated_data.model_dump(exclude_unset=True)

    if changes.get("name") is not None and _name_taken(db, changes["name"], exclude_id=product.id):
        raise HTTPException(status_code=409, detail="Product name already exists")

    for key, value in changes.items():
        # name/price/stock/category are NOT NULL; an explicit null leaves them unchanged
        if value is None and key in {"name", "price", "stock", "category"}:
            continue
        setattr(product, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Product name already exists")
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "fields": sorted(changes)}
    )
    return success(product_schemas.ProductOut.model_validate(product), "Product updated")


# =========================
# DELETE
# =========================
@router.delete("/{product_id}", response_model=Envelope)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("products:write")),
):
    product = _get_or_404(db, product_id)

    # Sold products stay for order history
    sold = db.query(OrderItem).filter(OrderItem.product_id == product.id).first()
    if sold:
        raise HTTPException(status_code=409, detail="Product has order history and cannot be deleted")

    pid, pname = product.id, product.name
    db.delete(product)
    db.commit()
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": pid})
    return success(message=f"Product '{pname}' deleted")
