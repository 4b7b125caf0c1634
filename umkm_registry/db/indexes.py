"""
umkm_registry/db/indexes.py

Purpose: Database index management

- Unique indexes on record identifiers
- Lookup indexes for owner, jurisdiction and ordering
- Usernames are deliberately not unique at the storage layer
"""

from umkm_registry.db.mongo import MongoDocumentStorage
from umkm_registry.db.storage import (
    DocumentStorage,
    UMKM_COLLECTION,
    USERS_COLLECTION,
    SESSIONS_COLLECTION,
    ADMIN_PASSWORDS_COLLECTION,
)
from umkm_registry.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes(storage: DocumentStorage):
    """
    Creates all necessary database indexes.
    Idempotent, and a no-op for backends without indexes.
    """
    if not isinstance(storage, MongoDocumentStorage):
        logger.debug(f"Backend '{storage.name}' needs no indexes")
        return

    try:
        umkm = storage.collection(UMKM_COLLECTION)
        users = storage.collection(USERS_COLLECTION)
        sessions = storage.collection(SESSIONS_COLLECTION)
        admin_passwords = storage.collection(ADMIN_PASSWORDS_COLLECTION)

        logger.info("Creating database indexes...")

        # UMKM COLLECTION
        await umkm.create_index("id", unique=True, name="umkm_id_unique")
        await umkm.create_index(
            [("user_id", 1), ("created_at", -1)],
            name="umkm_owner_created_idx"
        )
        await umkm.create_index([("created_at", -1)], name="umkm_created_idx")
        logger.debug("Created indexes on umkm")

        # USERS COLLECTION
        await users.create_index("id", unique=True, name="users_id_unique")
        await users.create_index("username", name="users_username_idx")
        await users.create_index("rw", name="users_rw_idx")
        logger.debug("Created indexes on users")

        # SESSIONS COLLECTION
        await sessions.create_index("token", unique=True, name="sessions_token_unique")

        # ADMIN PASSWORDS COLLECTION
        await admin_passwords.create_index("admin_id", unique=True, name="admin_id_unique")

        logger.info("Database indexes created")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise
