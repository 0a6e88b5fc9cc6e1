"""
Pydantic models for request/response validation.

Response models read straight from ORM rows (from_attributes) and serialize
with camelCase keys; request models accept either spelling.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from utils.validators import validate_email


class StoreBase(BaseModel):
    """Shared base: allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def dump(model_cls: type[StoreBase], obj) -> dict:
    """Serialize an ORM object through a response model (camelCase, JSON-safe)."""
    return model_cls.model_validate(obj).model_dump(by_alias=True, mode="json")


# ── Auth ────────────────────────────────────────────────────────────

class RegisterRequest(StoreBase):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def _bcrypt_length(cls, v: str) -> str:
        # bcrypt only reads the first 72 bytes
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes")
        return v

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class LoginRequest(StoreBase):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return v.strip().lower()


class UserOut(StoreBase):
    id: int
    email: str
    name: str
    role: str
    created_at: Optional[datetime] = None


# ── Catalog ─────────────────────────────────────────────────────────

class ProductCreateRequest(StoreBase):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    price: float = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name", "description")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ProductUpdateRequest(StoreBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    price: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = Field(default=None, max_length=500)


class ProductOut(StoreBase):
    id: int
    name: str
    description: str
    price: float
    stock: int
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Cart / Wishlist ─────────────────────────────────────────────────

class AddToCartRequest(StoreBase):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1)


class UpdateCartRequest(StoreBase):
    quantity: int = Field(..., ge=1)


class MoveToCartRequest(StoreBase):
    quantity: int = Field(1, ge=1)


class CartItemOut(StoreBase):
    id: int
    product_id: int
    quantity: int
    created_at: Optional[datetime] = None
    product: ProductOut


class WishlistItemOut(StoreBase):
    id: int
    product_id: int
    created_at: Optional[datetime] = None
    product: ProductOut


# ── Orders ──────────────────────────────────────────────────────────

class OrderItemOut(StoreBase):
    id: int
    product_id: int
    quantity: int
    price: float
    product: Optional[ProductOut] = None


class OrderOut(StoreBase):
    id: int
    user_id: int
    total: float
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = Field(default_factory=list)


class OrderStatusUpdateRequest(StoreBase):
    status: Literal["PENDING", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED"]


class UserRoleUpdateRequest(StoreBase):
    role: Literal["USER", "ADMIN"]
