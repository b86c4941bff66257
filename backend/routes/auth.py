# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user, permission_required
from utils.audit import write_log, client_ip
from models.users import User
from schemas import user as schemas
from schemas.common import Envelope, success
from database import get_db

router = APIRouter(prefix="/auth", tags=["Auth"])


# Create a back-office account (admin only)
@router.post("/register", response_model=Envelope[schemas.UserResponse], status_code=status.HTTP_201_CREATED)
def register(
    user: schemas.UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required("users:write")),
):
    normalized_email = user.email.strip().lower()

    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if db_user:
        raise HTTPException(status_code=409, detail="Email already registered")

    new_user = User(
        name=user.name,
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        role=user.role.value,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(
        db, user_id=current_user.id, action="REGISTER", resource="auth", status="SUCCESS",
        ip=client_ip(request), meta={"email": new_user.email, "role": new_user.role},
    )
    return success(schemas.UserResponse.model_validate(new_user), "User created")


# Authenticate user and issue JWT token
@router.post("/login", response_model=Envelope[schemas.Token])
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    db_user = db.query(User).filter(func.lower(User.email) == email).first()

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    access_token = create_access_token(data={"sub": db_user.email, "role": db_user.role})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    user_out = schemas.UserResponse.model_validate(db_user)
    return success({"access_token": access_token, "token_type": "bearer", "user": user_out})


# Retrieve current authenticated user details
@router.get("/me", response_model=Envelope[schemas.UserResponse])
def me(current_user: User = Depends(get_current_user)):
    return success(schemas.UserResponse.model_validate(current_user))
