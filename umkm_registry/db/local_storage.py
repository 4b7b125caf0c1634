"""
umkm_registry/db/local_storage.py

Purpose: Local storage fallback

- String-keyed JSON blobs (get / set / remove / keys)
- Optionally persisted to a single JSON file
- Document storage on top of it, one key per collection
- Used whenever no MongoDB URL is configured
"""

import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from umkm_registry.core.exceptions import StorageError
from umkm_registry.core.logging import get_logger
from umkm_registry.db.storage import (
    DocumentStorage,
    Filters,
    Sort,
    matches,
    sort_documents,
    UMKM_COLLECTION,
    USERS_COLLECTION,
    SESSIONS_COLLECTION,
    ADMIN_PASSWORDS_COLLECTION,
)

logger = get_logger(__name__)

# Storage keys used for each collection
STORAGE_KEYS = {
    UMKM_COLLECTION: "umkm",
    USERS_COLLECTION: "registered_users",
    SESSIONS_COLLECTION: "auth_user",
    ADMIN_PASSWORDS_COLLECTION: "admin_passwords",
}


class KeyValueStore:
    """
    JSON blob store keyed by string.

    With a path, every write rewrites the whole file; without one the
    data lives only as long as the process.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path) if path else None
        self._data: Dict[str, str] = {}

        if self._path and self._path.exists():
            self._data = self._load()

    def _load(self) -> Dict[str, str]:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read local storage file {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Local storage file {self._path} is not a JSON object")

        logger.info(f"Loaded local storage from {self._path} ({len(data)} keys)")
        return data

    def _flush(self, data: Dict[str, str]):
        if not self._path:
            return

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Could not write local storage file {self._path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Returns the decoded value under `key`, or `default`."""
        raw = self._data.get(key)
        if raw is None:
            return default

        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding corrupt local storage value for key '{key}'")
            return default

    # Writes hit the file first and only then replace the in-memory state
    def set(self, key: str, value: Any):
        data = {**self._data, key: json.dumps(value, ensure_ascii=False)}
        self._flush(data)
        self._data = data

    def remove(self, key: str):
        if key not in self._data:
            return
        data = {k: v for k, v in self._data.items() if k != key}
        self._flush(data)
        self._data = data

    def keys(self) -> List[str]:
        return list(self._data)


class LocalDocumentStorage(DocumentStorage):
    """
    Document storage over a KeyValueStore.
    Each collection is a JSON list stored under its own key.
    """

    name = "local"

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store or KeyValueStore()
        self._lock = asyncio.Lock()

    @classmethod
    def from_path(cls, path: Optional[str]) -> "LocalDocumentStorage":
        """Builds a file-backed store, or an in-memory one when path is empty."""
        if path:
            logger.info(f"Local storage file: {path}")
        else:
            logger.info("Local storage kept in memory only")
        return cls(KeyValueStore(path))

    def _key(self, collection: str) -> str:
        return STORAGE_KEYS.get(collection, collection)

    def _read(self, collection: str) -> List[Dict[str, Any]]:
        documents = self.store.get(self._key(collection), [])
        return documents if isinstance(documents, list) else []

    def _write(self, collection: str, documents: List[Dict[str, Any]]):
        self.store.set(self._key(collection), documents)

    async def find(
        self,
        collection: str,
        filters: Optional[Filters] = None,
        sort: Optional[Sort] = None
    ) -> List[Dict[str, Any]]:
        found = [doc for doc in self._read(collection) if matches(doc, filters)]
        return sort_documents(found, sort)

    async def find_one(self, collection: str, filters: Filters) -> Optional[Dict[str, Any]]:
        for doc in self._read(collection):
            if matches(doc, filters):
                return doc
        return None

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            documents = self._read(collection)
            stored = copy.deepcopy(document)
            # Newest first, matching the order lists are displayed in
            documents.insert(0, stored)
            self._write(collection, documents)
        return copy.deepcopy(stored)

    async def update_one(
        self,
        collection: str,
        filters: Filters,
        changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        async with self._lock:
            documents = self._read(collection)
            for index, doc in enumerate(documents):
                if matches(doc, filters):
                    documents[index] = {**doc, **copy.deepcopy(changes)}
                    self._write(collection, documents)
                    return copy.deepcopy(documents[index])
        return None

    async def delete_one(self, collection: str, filters: Filters) -> bool:
        async with self._lock:
            documents = self._read(collection)
            for index, doc in enumerate(documents):
                if matches(doc, filters):
                    del documents[index]
                    self._write(collection, documents)
                    return True
        return False
