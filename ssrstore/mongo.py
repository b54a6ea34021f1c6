"""MongoDB-backed store.

Same async surface as `MemoryStore`. Atomicity comes from the server rather
than from locks:

- product ids and account emails are protected by unique indexes
- cart counts are changed with a single field-level `$inc`; decrement only
  matches when the current count is above zero
"""

import asyncio
import functools
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import Conflict, InternalError, ItemNotInCart, NotFound
from .settings import Settings

logger = structlog.get_logger(__name__)

_PRODUCT_ID_ATTEMPTS = 10


def _driver_errors(fn):
    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except PyMongoError as exc:
            logger.error("Database operation failed", operation=fn.__name__, error=str(exc))
            raise InternalError() from exc

    return wrapper


def _object_id(account_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(account_id)
    except (InvalidId, TypeError):
        return None


def _account_out(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoStore:
    kind = "mongo"

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: Optional[AsyncMongoClient] = None
        self._db = None

    @property
    def products(self):
        return self._db["products"]

    @property
    def accounts(self):
        return self._db["users"]

    async def open(self) -> None:
        """Connect, retrying with exponential backoff; give up loudly."""
        retries = max(1, self.settings.db_connect_retries)
        delay = self.settings.db_connect_backoff_seconds
        for attempt in range(1, retries + 1):
            client = AsyncMongoClient(
                self.settings.mongo_uri,
                serverSelectionTimeoutMS=self.settings.db_timeout_ms,
                tz_aware=True,
            )
            try:
                db = client[self.settings.database_name]
                await db.command("ping")
                await db["products"].create_index("id", unique=True)
                await db["users"].create_index("email", unique=True)
            except PyMongoError as exc:
                await client.close()
                if attempt == retries:
                    logger.error("Could not connect to MongoDB", attempts=attempt, error=str(exc))
                    raise
                logger.warning(
                    "MongoDB connection failed, retrying",
                    attempt=attempt,
                    retry_in=delay,
                    error=str(exc),
                )
                await asyncio.sleep(delay)
                delay *= 2
                continue
            self._client, self._db = client, db
            logger.info("Connected to MongoDB", database=self.settings.database_name)
            return

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = self._db = None
            logger.info("MongoDB connection closed")

    async def ping(self) -> bool:
        if self._db is None:
            return False
        try:
            await self._db.command("ping")
        except PyMongoError:
            return False
        return True

    # ---------------------------
    # Catalog
    # ---------------------------
    @_driver_errors
    async def insert_product(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        for _ in range(_PRODUCT_ID_ATTEMPTS):
            last = await self.products.find_one({}, {"id": 1}, sort=[("id", DESCENDING)])
            product = dict(doc, id=(last["id"] if last else 0) + 1)
            try:
                await self.products.insert_one(product)
            except DuplicateKeyError:
                logger.info("Product id taken by a concurrent insert, retrying", id=product["id"])
                continue
            product.pop("_id", None)
            return product
        raise InternalError("Could not assign a product id")

    @_driver_errors
    async def list_products(self) -> List[Dict[str, Any]]:
        cursor = self.products.find({}, {"_id": 0}).sort("id", ASCENDING)
        return await cursor.to_list()

    @_driver_errors
    async def recent_products(self, limit: int) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []
        cursor = self.products.find({}, {"_id": 0}).sort("id", DESCENDING).limit(limit)
        return list(reversed(await cursor.to_list()))

    @_driver_errors
    async def products_in_category(self, category: str, limit: int) -> List[Dict[str, Any]]:
        cursor = (
            self.products.find({"category": category}, {"_id": 0})
            .sort("id", ASCENDING)
            .limit(limit)
        )
        return await cursor.to_list()

    @_driver_errors
    async def delete_product(self, product_id: int) -> bool:
        result = await self.products.delete_one({"id": product_id})
        return result.deleted_count == 1

    # ---------------------------
    # Accounts
    # ---------------------------
    @_driver_errors
    async def insert_account(self, doc: Dict[str, Any]) -> str:
        doc = dict(doc)
        try:
            result = await self.accounts.insert_one(doc)
        except DuplicateKeyError:
            raise Conflict() from None
        return str(result.inserted_id)

    @_driver_errors
    async def find_account_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        doc = await self.accounts.find_one({"email": email})
        return _account_out(doc) if doc else None

    @_driver_errors
    async def get_account(self, account_id: str) -> Optional[Dict[str, Any]]:
        oid = _object_id(account_id)
        if oid is None:
            return None
        doc = await self.accounts.find_one({"_id": oid})
        return _account_out(doc) if doc else None

    @_driver_errors
    async def get_cart(self, account_id: str) -> Dict[str, int]:
        account = await self.get_account(account_id)
        if account is None:
            raise NotFound("User not found")
        return account["cartData"]

    @_driver_errors
    async def increment_cart_item(self, account_id: str, item: str) -> Dict[str, int]:
        oid = _object_id(account_id)
        doc = None
        if oid is not None:
            doc = await self.accounts.find_one_and_update(
                {"_id": oid},
                {"$inc": {f"cartData.{item}": 1}},
                projection={"cartData": 1},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise NotFound("User not found")
        return doc["cartData"]

    @_driver_errors
    async def decrement_cart_item(self, account_id: str, item: str) -> Dict[str, int]:
        oid = _object_id(account_id)
        if oid is None:
            raise NotFound("User not found")
        doc = await self.accounts.find_one_and_update(
            {"_id": oid, f"cartData.{item}": {"$gt": 0}},
            {"$inc": {f"cartData.{item}": -1}},
            projection={"cartData": 1},
            return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            return doc["cartData"]
        if await self.accounts.find_one({"_id": oid}, {"_id": 1}) is None:
            raise NotFound("User not found")
        raise ItemNotInCart()
