import asyncio
import copy
import uuid
from typing import Any, Dict, List, Optional

import structlog

from .errors import Conflict, ItemNotInCart, NotFound
from .mongo import MongoStore
from .settings import Settings

logger = structlog.get_logger(__name__)

# In-memory document collections plus per-key locks. Every read-modify-write
# on a document happens under the lock for that document, so concurrent
# requests against one account (or the catalog id counter) cannot interleave.


class MemoryStore:
    kind = "memory"

    def __init__(self):
        self.products: List[Dict[str, Any]] = []
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self._emails: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def open(self) -> None:
        logger.warning("Using in-memory store; data is lost on restart")

    async def close(self) -> None:
        self._locks.clear()

    async def ping(self) -> bool:
        return True

    # ---------------------------
    # Catalog
    # ---------------------------
    async def insert_product(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        async with self._get_lock("catalog"):
            next_id = max((p["id"] for p in self.products), default=0) + 1
            product = dict(doc, id=next_id)
            self.products.append(product)
            return copy.deepcopy(product)

    async def list_products(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.products)

    async def recent_products(self, limit: int) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.products[-limit:]) if limit > 0 else []

    async def products_in_category(self, category: str, limit: int) -> List[Dict[str, Any]]:
        out = [p for p in self.products if p["category"] == category]
        return copy.deepcopy(out[:limit])

    async def delete_product(self, product_id: int) -> bool:
        async with self._get_lock("catalog"):
            for i, p in enumerate(self.products):
                if p["id"] == product_id:
                    del self.products[i]
                    return True
            return False

    # ---------------------------
    # Accounts
    # ---------------------------
    async def insert_account(self, doc: Dict[str, Any]) -> str:
        email = doc["email"]
        async with self._get_lock("accounts"):
            if email in self._emails:
                raise Conflict()
            account_id = uuid.uuid4().hex
            self.accounts[account_id] = dict(copy.deepcopy(doc), id=account_id)
            self._emails[email] = account_id
            return account_id

    async def find_account_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        account_id = self._emails.get(email)
        if account_id is None:
            return None
        return copy.deepcopy(self.accounts[account_id])

    async def get_account(self, account_id: str) -> Optional[Dict[str, Any]]:
        account = self.accounts.get(account_id)
        return copy.deepcopy(account) if account else None

    async def get_cart(self, account_id: str) -> Dict[str, int]:
        account = self.accounts.get(account_id)
        if account is None:
            raise NotFound("User not found")
        return dict(account["cartData"])

    async def increment_cart_item(self, account_id: str, item: str) -> Dict[str, int]:
        async with self._get_lock(f"cart:{account_id}"):
            account = self.accounts.get(account_id)
            if account is None:
                raise NotFound("User not found")
            cart = account["cartData"]
            cart[item] = cart.get(item, 0) + 1
            return dict(cart)

    async def decrement_cart_item(self, account_id: str, item: str) -> Dict[str, int]:
        async with self._get_lock(f"cart:{account_id}"):
            account = self.accounts.get(account_id)
            if account is None:
                raise NotFound("User not found")
            cart = account["cartData"]
            if cart.get(item, 0) <= 0:
                raise ItemNotInCart()
            cart[item] -= 1
            return dict(cart)


def open_store(settings: Settings):
    """Pick the backend from configuration: MongoDB when a uri is set."""
    if settings.mongo_uri:
        return MongoStore(settings)
    return MemoryStore()
