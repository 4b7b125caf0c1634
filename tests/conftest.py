import asyncio
import pytest
from fastapi.testclient import TestClient

from umkm_registry.db.local_storage import LocalDocumentStorage
from umkm_registry.db.storage import set_storage
from umkm_registry.main import app


@pytest.fixture()
def storage():
    """In-memory local backend installed for the duration of a test."""
    storage = LocalDocumentStorage()
    set_storage(storage)
    yield storage
    set_storage(None)


@pytest.fixture()
def client(storage):
    # No context manager: the lifespan would open the configured backend
    return TestClient(app)


@pytest.fixture()
def run():
    """Runs a coroutine to completion."""
    return asyncio.run
