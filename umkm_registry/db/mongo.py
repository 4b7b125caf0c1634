"""
umkm_registry/db/mongo.py

Purpose: MongoDB backend

- Initializes the Motor client
- Collections: umkm, users, admin_passwords, sessions
- Translates storage filters into MongoDB queries
- Wraps driver errors as RemoteFailureError
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError
from typing import Any, Dict, List, Optional
from umkm_registry.core.config import settings
from umkm_registry.core.exceptions import NotConfiguredError, RemoteFailureError
from umkm_registry.core.logging import get_logger
from umkm_registry.db.storage import DocumentStorage, Filters, Sort, is_multi_value

logger = get_logger(__name__)

# Never expose MongoDB's internal key to callers
PROJECTION = {"_id": 0}


def build_query(filters: Optional[Filters]) -> Dict[str, Any]:
    """
    Converts storage filters into a MongoDB query document.

    Args:
        filters: Field -> value, or field -> collection of values

    Returns:
        Query dict, using $in for multi-valued filters
    """
    query = {}
    for field, expected in (filters or {}).items():
        if is_multi_value(expected):
            query[field] = {"$in": list(expected)}
        else:
            query[field] = expected
    return query


def build_sort(sort: Optional[Sort]) -> Optional[list]:
    if not sort:
        return None
    field, descending = sort
    return [(field, DESCENDING if descending else ASCENDING)]


class MongoDocumentStorage(DocumentStorage):
    """
    Document storage backed by a Motor database.
    """

    name = "mongodb"

    def __init__(self, client: AsyncIOMotorClient, database: AsyncIOMotorDatabase):
        self.client = client
        self.database = database

    def collection(self, name: str):
        return self.database[name]

    async def find(
        self,
        collection: str,
        filters: Optional[Filters] = None,
        sort: Optional[Sort] = None
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self.collection(collection).find(build_query(filters), PROJECTION)
            mongo_sort = build_sort(sort)
            if mongo_sort:
                cursor = cursor.sort(mongo_sort)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise RemoteFailureError(f"MongoDB find on '{collection}' failed: {e}") from e

    async def find_one(self, collection: str, filters: Filters) -> Optional[Dict[str, Any]]:
        try:
            return await self.collection(collection).find_one(build_query(filters), PROJECTION)
        except PyMongoError as e:
            raise RemoteFailureError(f"MongoDB find_one on '{collection}' failed: {e}") from e

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        # insert_one mutates its argument with _id
        to_insert = dict(document)
        try:
            await self.collection(collection).insert_one(to_insert)
        except PyMongoError as e:
            raise RemoteFailureError(f"MongoDB insert on '{collection}' failed: {e}") from e

        to_insert.pop("_id", None)
        return to_insert

    async def update_one(
        self,
        collection: str,
        filters: Filters,
        changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        try:
            return await self.collection(collection).find_one_and_update(
                build_query(filters),
                {"$set": changes},
                projection=PROJECTION,
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise RemoteFailureError(f"MongoDB update on '{collection}' failed: {e}") from e

    async def delete_one(self, collection: str, filters: Filters) -> bool:
        try:
            result = await self.collection(collection).delete_one(build_query(filters))
        except PyMongoError as e:
            raise RemoteFailureError(f"MongoDB delete on '{collection}' failed: {e}") from e
        return result.deleted_count > 0

    async def ping(self) -> bool:
        """
        Checks if the database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise
        """
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    async def close(self):
        logger.info("Closing MongoDB connection")
        self.client.close()
        logger.info("MongoDB connection closed")


async def connect_to_mongo() -> MongoDocumentStorage:
    """
    Establishes the MongoDB connection and verifies it with a ping.
    Called during application startup.

    Raises:
        NotConfiguredError: If MONGODB_URL is not set
        ConnectionError: If the server cannot be reached
    """
    if not settings.has_remote_backend:
        raise NotConfiguredError(
            "MongoDB is not configured. Set MONGODB_URL and MONGODB_DB_NAME."
        )

    logger.info("Connecting to MongoDB")

    client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
    )
    database = client[settings.MONGODB_DB_NAME]

    try:
        await client.admin.command("ping")
    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        client.close()
        logger.critical(f"Failed to connect to MongoDB: {e}")
        raise ConnectionError("Could not establish MongoDB connection") from e

    logger.info(f"Connected to MongoDB: {settings.MONGODB_DB_NAME}")
    return MongoDocumentStorage(client, database)
