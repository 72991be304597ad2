"""
Document store client over MongoDB (motor)
Keeps the get/set/update/query/transaction surface the rest of the app codes against
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from mavericks.core.errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# [("field", "asc" | "desc"), ...]
OrderBy = Sequence[Tuple[str, str]]


def new_key() -> str:
    return uuid.uuid4().hex


def _from_mongo(raw: Optional[dict]) -> Optional[dict]:
    """Expose the Mongo _id as `id`"""
    if raw is None:
        return None
    doc = dict(raw)
    doc["id"] = doc.pop("_id")
    return doc


def _to_mongo(key: str, doc: dict) -> dict:
    raw = {k: v for k, v in doc.items() if k != "id"}
    raw["_id"] = key
    return raw


def _mongo_filter(where: Optional[dict]) -> dict:
    if not where:
        return {}
    return {("_id" if k == "id" else k): v for k, v in where.items()}


def _mongo_sort(order_by: Optional[OrderBy]) -> List[Tuple[str, int]]:
    return [(field, DESCENDING if direction == "desc" else ASCENDING) for field, direction in (order_by or [])]


@contextmanager
def _translate_errors(action: str, collection: str):
    try:
        yield
    except PyMongoError as e:
        logger.error("Document store %s on %s failed: %s", action, collection, e)
        raise StoreError(f"Document store {action} failed on {collection}") from e


class Transaction:
    """Reads and writes bound to one session; reads see this transaction's own writes"""

    def __init__(self, db: AsyncIOMotorDatabase, session: AsyncIOMotorClientSession):
        self.db = db
        self.session = session

    async def get(self, collection: str, key: str) -> Optional[dict]:
        raw = await self.db[collection].find_one({"_id": key}, session=self.session)
        return _from_mongo(raw)

    async def query(self, collection: str, where: Optional[dict] = None,
                    order_by: Optional[OrderBy] = None, limit: Optional[int] = None) -> List[dict]:
        cursor = self.db[collection].find(_mongo_filter(where), session=self.session)
        if order_by:
            cursor = cursor.sort(_mongo_sort(order_by))
        if limit:
            cursor = cursor.limit(limit)
        return [_from_mongo(raw) for raw in await cursor.to_list(length=limit)]

    async def set(self, collection: str, key: str, doc: dict) -> None:
        await self.db[collection].replace_one(
            {"_id": key}, _to_mongo(key, doc), upsert=True, session=self.session
        )

    async def add(self, collection: str, doc: dict) -> str:
        key = new_key()
        await self.db[collection].insert_one(_to_mongo(key, doc), session=self.session)
        return key

    async def update(self, collection: str, key: str, fields: dict) -> bool:
        result = await self.db[collection].update_one(
            {"_id": key}, {"$set": fields}, session=self.session
        )
        return result.matched_count > 0

    async def delete(self, collection: str, key: str) -> None:
        await self.db[collection].delete_one({"_id": key}, session=self.session)


class DocumentStore:
    """
    Thin async wrapper over a Mongo database.
    Documents go in and come out as plain dicts keyed by `id`.
    """

    def __init__(self, db: AsyncIOMotorDatabase, client: Optional[AsyncIOMotorClient] = None):
        self.db = db
        self.client = client

    async def get(self, collection: str, key: str) -> Optional[dict]:
        with _translate_errors("get", collection):
            raw = await self.db[collection].find_one({"_id": key})
        return _from_mongo(raw)

    async def set(self, collection: str, key: str, doc: dict) -> None:
        with _translate_errors("set", collection):
            await self.db[collection].replace_one({"_id": key}, _to_mongo(key, doc), upsert=True)

    async def add(self, collection: str, doc: dict) -> str:
        key = new_key()
        with _translate_errors("add", collection):
            await self.db[collection].insert_one(_to_mongo(key, doc))
        return key

    async def update(self, collection: str, key: str, fields: dict) -> bool:
        """Merge `fields` (top-level or dotted paths) into an existing document"""
        with _translate_errors("update", collection):
            result = await self.db[collection].update_one({"_id": key}, {"$set": fields})
        return result.matched_count > 0

    async def set_field_if_absent(self, collection: str, key: str, field: str, value: Any) -> bool:
        """
        Write `field` only when the document exists and does not have it yet.
        Returns True if this call wrote the value.
        """
        with _translate_errors("conditional update", collection):
            result = await self.db[collection].update_one(
                {"_id": key, field: {"$exists": False}},
                {"$set": {field: value}}
            )
        return result.modified_count > 0

    async def update_many(self, collection: str, where: dict, fields: dict) -> int:
        with _translate_errors("update_many", collection):
            result = await self.db[collection].update_many(_mongo_filter(where), {"$set": fields})
        return result.modified_count

    async def delete(self, collection: str, key: str) -> None:
        with _translate_errors("delete", collection):
            await self.db[collection].delete_one({"_id": key})

    async def delete_many(self, collection: str, where: dict) -> int:
        with _translate_errors("delete_many", collection):
            result = await self.db[collection].delete_many(_mongo_filter(where))
        return result.deleted_count

    async def query(self, collection: str, where: Optional[dict] = None,
                    order_by: Optional[OrderBy] = None, limit: Optional[int] = None) -> List[dict]:
        """
        Equality filters only. A filter on an array field matches when the
        array contains the value.
        """
        with _translate_errors("query", collection):
            cursor = self.db[collection].find(_mongo_filter(where))
            if order_by:
                cursor = cursor.sort(_mongo_sort(order_by))
            if limit:
                cursor = cursor.limit(limit)
            raws = await cursor.to_list(length=limit)
        return [_from_mongo(raw) for raw in raws]

    async def count(self, collection: str, where: Optional[dict] = None) -> int:
        with _translate_errors("count", collection):
            return await self.db[collection].count_documents(_mongo_filter(where))

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        """
        Run `fn(txn)` in a Mongo session transaction (needs a replica set).
        The driver retries `fn` on transient transaction errors.
        """
        if self.client is None:
            raise StoreError("Transactions need a client handle")

        async def callback(session: AsyncIOMotorClientSession):
            return await fn(Transaction(self.db, session))

        with _translate_errors("transaction", "session"):
            async with await self.client.start_session() as session:
                return await session.with_transaction(callback)


async def create_indexes(store: DocumentStore) -> None:
    """Create MongoDB indexes for the query shapes we use"""
    db = store.db
    with _translate_errors("create_index", "*"):
        await db.discussions.create_index([("timestamp", DESCENDING)])
        await db.discussions.create_index([("author_id", ASCENDING), ("timestamp", DESCENDING)])
        await db.discussions.create_index([("replied_by", ASCENDING), ("timestamp", DESCENDING)])
        await db.discussions.create_index([("category", ASCENDING), ("upvotes", DESCENDING)])

        await db.discussion_replies.create_index([("thread_id", ASCENDING), ("timestamp", ASCENDING)])

        await db.notifications.create_index([("user_id", ASCENDING), ("created_at", ASCENDING)])
        await db.notifications.create_index([("user_id", ASCENDING), ("is_read", ASCENDING)])

        await db.users.create_index([("xp", DESCENDING)])

    logger.info("Document store indexes created")
