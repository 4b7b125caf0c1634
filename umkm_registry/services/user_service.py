"""
umkm_registry/services/user_service.py

Purpose: User registry

- Stores self-registered users with hashed passwords
- Looks users up by id, username and jurisdiction (RW)
- Resolves an RW to the owner ids of its residents
- Strips password material before identities leave the service
"""

from umkm_registry.db.storage import get_storage, USERS_COLLECTION
from umkm_registry.core.logging import get_logger, LogContext
from umkm_registry.models.user import User
from typing import Optional, Dict, Any, List

logger = get_logger(__name__)

# Fields that must never reach a session or an API response
SECRET_FIELDS = ("password", "password_hash")


def to_public_user(record: Dict[str, Any]) -> User:
    """
    Builds a public identity from a stored user record.

    Args:
        record: Stored user document

    Returns:
        User without password material
    """
    public = {key: value for key, value in record.items() if key not in SECRET_FIELDS}
    return User.model_validate(public)


async def list_users(rw: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Lists registered users, optionally only those in one RW.

    Args:
        rw: Jurisdiction code

    Returns:
        Stored user documents, oldest registration first
    """
    filters = {"rw": rw} if rw is not None else None
    return await get_storage().find(USERS_COLLECTION, filters, sort=("created_at", False))


async def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    return await get_storage().find_one(USERS_COLLECTION, {"id": user_id})


async def get_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    """
    Retrieves the first user registered under a username.
    Usernames are only kept unique by registration, not by storage.
    """
    return await get_storage().find_one(USERS_COLLECTION, {"username": username})


async def add_user(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Appends a user record to the registry.

    Args:
        record: Complete user document including password_hash

    Returns:
        The stored document
    """
    with LogContext(operation="add_user", user_id=record.get("id"), rw=record.get("rw")):
        stored = await get_storage().insert_one(USERS_COLLECTION, record)
        logger.info(f"User registered: {record.get('username')}")
        return stored


async def update_user(user_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Rewrites fields of a registry entry in place.

    Args:
        user_id: Id of the entry to change
        changes: Fields to set

    Returns:
        Updated document, or None if no entry has that id
    """
    with LogContext(operation="update_user", user_id=user_id):
        updated = await get_storage().update_one(USERS_COLLECTION, {"id": user_id}, changes)
        if updated is None:
            logger.warning("User not found for update")
        else:
            logger.debug("User updated", extra={"fields": list(changes)})
        return updated


async def replace_user_id(username: str, old_id: Optional[str], new_id: str) -> Optional[Dict[str, Any]]:
    """
    Moves a registry entry to a new id, matching on username and old id.
    An old id of None matches entries stored without one.
    """
    return await get_storage().update_one(
        USERS_COLLECTION,
        {"username": username, "id": old_id},
        {"id": new_id}
    )


async def get_user_ids_in_rw(rw: str) -> List[str]:
    """
    Resolves a jurisdiction to the ids of the users registered in it.

    Args:
        rw: Jurisdiction code

    Returns:
        User ids (possibly empty)
    """
    users = await get_storage().find(USERS_COLLECTION, {"rw": rw})
    return [user["id"] for user in users if user.get("id")]
