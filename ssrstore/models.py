# ssrstore/models.py
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    image: str
    category: str
    new_price: float
    old_price: float
    date: datetime
    available: bool = True


class Account(BaseModel):
    """Stored account document. `password` holds the hash, never plaintext."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    email: str
    password: str
    cartData: Dict[str, int]
    date: datetime


def products_out(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [Product.model_validate(d).model_dump(mode="json") for d in docs]
