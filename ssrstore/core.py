from datetime import datetime, timezone
from typing import Any, Dict, Union

from pydantic import BaseModel, EmailStr, Field

from .errors import ValidationError


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1, description="Image url is required")
    category: str = Field(..., min_length=1)
    new_price: float = Field(..., ge=0)
    old_price: float = Field(..., ge=0)
    available: bool = True


class RemoveProductIn(BaseModel):
    id: int


class SignupIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class CartItemIn(BaseModel):
    itemId: Union[int, str]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _make_product_dict(p: ProductIn) -> Dict[str, Any]:
    return {
        "name": p.name,
        "image": p.image,
        "category": p.category,
        "new_price": p.new_price,
        "old_price": p.old_price,
        "date": _now(),
        "available": p.available,
    }


def _make_account_dict(name: str, email: str, password_hash: str, slots: int) -> Dict[str, Any]:
    return {
        "name": name,
        "email": email,
        "password": password_hash,
        "cartData": _seed_cart(slots),
        "date": _now(),
    }


def _seed_cart(slots: int) -> Dict[str, int]:
    return {str(i): 0 for i in range(slots)}


def normalize_item_id(item_id: Union[int, str]) -> str:
    """Cart keys are strings; ints become their decimal form.

    Keys land in document field paths, so '.', NUL and a leading '$' are refused.
    """
    key = str(item_id).strip()
    if not key or "." in key or "\x00" in key or key.startswith("$"):
        raise ValidationError("Invalid itemId")
    return key
