from pydantic import BaseModel, ConfigDict
from typing import Generic, List, Literal, Optional, TypeVar

T = TypeVar("T")


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Uniform response wrapper: success / fail (4xx) / error (5xx)
class Envelope(BaseModel, Generic[T]):
    status: Literal["success", "fail", "error"] = "success"
    data: Optional[T] = None
    message: Optional[str] = None


# Paginated listing
class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int


def success(data=None, message: Optional[str] = None) -> dict:
    return {"status": "success", "data": data, "message": message}
