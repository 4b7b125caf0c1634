"""
umkm_registry/db/storage.py

Purpose: Storage backend interface

- One async document-storage interface for every service
- Two implementations: MongoDB (remote) and a local key/value store
- Backend chosen once at startup from configuration
- Services reach the active backend through get_storage()
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple
from umkm_registry.core.config import settings
from umkm_registry.core.logging import get_logger

logger = get_logger(__name__)

# Collection names shared by both backends
UMKM_COLLECTION = "umkm"
USERS_COLLECTION = "users"
SESSIONS_COLLECTION = "sessions"
ADMIN_PASSWORDS_COLLECTION = "admin_passwords"

Filters = Dict[str, Any]
Sort = Tuple[str, bool]


class DocumentStorage(ABC):
    """
    Minimal document store used by the services.

    Filters map a field to either a single value (exact match) or a
    list/tuple/set of values (membership). Documents are plain dicts and
    are always returned as copies.
    """

    name: str = "abstract"

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: Optional[Filters] = None,
        sort: Optional[Sort] = None
    ) -> List[Dict[str, Any]]:
        """Returns every matching document, optionally sorted by (field, descending)."""

    @abstractmethod
    async def find_one(self, collection: str, filters: Filters) -> Optional[Dict[str, Any]]:
        """Returns the first matching document or None."""

    @abstractmethod
    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Inserts a document and returns it as stored."""

    @abstractmethod
    async def update_one(
        self,
        collection: str,
        filters: Filters,
        changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Sets `changes` on the first match and returns the updated document, or None."""

    @abstractmethod
    async def delete_one(self, collection: str, filters: Filters) -> bool:
        """Deletes the first match. Returns True if a document was removed."""

    async def ping(self) -> bool:
        """Health check; local backends are always reachable."""
        return True

    async def close(self):
        """Releases backend resources."""


def is_multi_value(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def matches(document: Dict[str, Any], filters: Optional[Filters]) -> bool:
    """
    Applies storage filter semantics to a plain dict.

    Args:
        document: Candidate document
        filters: Field -> value (or collection of accepted values)

    Returns:
        True if every filter is satisfied
    """
    if not filters:
        return True

    for field, expected in filters.items():
        actual = document.get(field)
        if is_multi_value(expected):
            if actual not in expected:
                return False
        elif actual != expected:
            return False

    return True


def sort_documents(documents: Iterable[Dict[str, Any]], sort: Optional[Sort]) -> List[Dict[str, Any]]:
    """Sorts documents by one field; documents missing the field sort last."""
    documents = list(documents)
    if not sort:
        return documents

    field, descending = sort
    present = [doc for doc in documents if doc.get(field) is not None]
    missing = [doc for doc in documents if doc.get(field) is None]
    present.sort(key=lambda doc: doc[field], reverse=descending)
    return present + missing


# Active backend, installed at startup
_storage: Optional[DocumentStorage] = None


def set_storage(storage: Optional[DocumentStorage]):
    """
    Installs the storage backend used by all services.
    Passing None uninstalls it.
    """
    global _storage
    _storage = storage
    if storage is not None:
        logger.info(f"Storage backend installed: {storage.name}")


def get_storage() -> DocumentStorage:
    """
    Returns the active storage backend.

    Raises:
        RuntimeError: If no backend was installed during startup
    """
    if _storage is None:
        raise RuntimeError(
            "Storage not initialized. Call open_storage() during startup."
        )
    return _storage


async def open_storage() -> DocumentStorage:
    """
    Builds the backend selected by configuration and installs it.
    MongoDB when MONGODB_URL is set, otherwise the local key/value store.
    """
    if settings.has_remote_backend:
        from umkm_registry.db.mongo import connect_to_mongo

        storage = await connect_to_mongo()
    else:
        from umkm_registry.db.local_storage import LocalDocumentStorage

        logger.info("MONGODB_URL not set, using local storage fallback")
        storage = LocalDocumentStorage.from_path(settings.LOCAL_STORAGE_PATH)

    set_storage(storage)
    return storage


async def close_storage():
    """Closes and uninstalls the active backend."""
    global _storage

    if _storage is not None:
        await _storage.close()
        _storage = None
