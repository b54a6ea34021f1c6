from typing import Any, Dict, List, Tuple, Union

import structlog
from starlette.concurrency import run_in_threadpool

from .core import (
    ProductIn, _make_account_dict, _make_product_dict, normalize_item_id
)
from .errors import BadCredentials, Conflict, NotFound
from .models import Account
from .security import PasswordHasher, TokenService

logger = structlog.get_logger(__name__)

NEW_COLLECTION_SIZE = 8
POPULAR_SIZE = 4


class CatalogService:
    def __init__(self, store):
        self.store = store

    async def add(self, payload: ProductIn) -> Dict[str, Any]:
        # id is assigned by the store as max(existing) + 1
        product = await self.store.insert_product(_make_product_dict(payload))
        logger.info("Product added", id=product["id"], name=product["name"])
        return product

    async def remove(self, product_id: int) -> None:
        if not await self.store.delete_product(product_id):
            raise NotFound("Product not found")
        logger.info("Product removed", id=product_id)

    async def list_all(self) -> List[Dict[str, Any]]:
        return await self.store.list_products()

    async def new_collection(self, limit: int = NEW_COLLECTION_SIZE) -> List[Dict[str, Any]]:
        return await self.store.recent_products(limit)

    async def popular(self, category: str, limit: int = POPULAR_SIZE) -> List[Dict[str, Any]]:
        return await self.store.products_in_category(category, limit)


class AccountService:
    def __init__(self, store, hasher: PasswordHasher, tokens: TokenService, cart_slots: int = 100):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.cart_slots = cart_slots

    async def signup(self, name: str, email: str, password: str) -> Tuple[str, Dict[str, int]]:
        if await self.store.find_account_by_email(email) is not None:
            raise Conflict()
        password_hash = await run_in_threadpool(self.hasher.hash, password)
        doc = _make_account_dict(name, email, password_hash, self.cart_slots)
        # The store's unique email constraint settles concurrent signups.
        account_id = await self.store.insert_account(doc)
        logger.info("Account created", account_id=account_id, email=email)
        return self.tokens.issue(account_id), doc["cartData"]

    async def login(self, email: str, password: str) -> Tuple[str, Dict[str, int]]:
        doc = await self.store.find_account_by_email(email)
        if doc is None:
            raise NotFound("User not found")
        account = Account.model_validate(doc)
        if not await run_in_threadpool(self.hasher.verify, password, account.password):
            logger.info("Login rejected", email=email)
            raise BadCredentials()
        logger.info("Login", account_id=account.id)
        return self.tokens.issue(account.id), account.cartData


class CartService:
    def __init__(self, store):
        self.store = store

    async def increment(self, account_id: str, item_id: Union[int, str]) -> Tuple[str, Dict[str, int]]:
        item = normalize_item_id(item_id)
        cart = await self.store.increment_cart_item(account_id, item)
        logger.info("Item added to cart", account_id=account_id, item=item, count=cart[item])
        return item, cart

    async def decrement(self, account_id: str, item_id: Union[int, str]) -> Tuple[str, Dict[str, int]]:
        item = normalize_item_id(item_id)
        cart = await self.store.decrement_cart_item(account_id, item)
        logger.info("Item removed from cart", account_id=account_id, item=item, count=cart[item])
        return item, cart

    async def read(self, account_id: str) -> Dict[str, int]:
        return await self.store.get_cart(account_id)
