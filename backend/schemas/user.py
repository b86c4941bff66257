from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from models.users import UserRole

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for creating back-office accounts (admin only)
class UserCreate(UserBase):
    name: str = Field(min_length=2)
    password: str = Field(min_length=6, max_length=72)
    role: UserRole = UserRole.STAFF

    # bcrypt only accepts 72 bytes; multi-byte characters count more than once
    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return value

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    name: str
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
