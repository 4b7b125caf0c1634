"""
umkm_registry/services/session_service.py

Purpose: Session management

- Issues session tokens
- Persists the identity bound to each token
- Handles session expiry on inactivity
- Clears sessions on logout
"""

import secrets
from umkm_registry.db.storage import get_storage, SESSIONS_COLLECTION
from umkm_registry.core.config import settings
from umkm_registry.core.logging import get_logger
from umkm_registry.models.user import Session
from utils.time_utils import utc_now_iso, is_session_expired
from typing import Optional, List

logger = get_logger(__name__)


def new_session() -> Session:
    """
    Creates an anonymous session with a fresh token.
    Nothing is stored until the session is saved.
    """
    now = utc_now_iso()
    return Session(token=secrets.token_urlsafe(32), created_at=now, last_activity=now)


async def save_session(session: Session) -> Session:
    """
    Persists a session, creating or replacing its stored copy.

    Args:
        session: Session to store

    Returns:
        The same session with last_activity refreshed
    """
    session.last_activity = utc_now_iso()
    document = session.model_dump(mode="json")

    storage = get_storage()
    updated = await storage.update_one(SESSIONS_COLLECTION, {"token": session.token}, document)
    if updated is None:
        await storage.insert_one(SESSIONS_COLLECTION, document)
        logger.debug("Session stored")

    return session


async def open_session(token: Optional[str]) -> Optional[Session]:
    """
    Resolves a token to its stored session.

    Sessions idle for longer than SESSION_TIMEOUT_MINUTES are deleted
    and reported as missing. A live session has its activity refreshed.

    Args:
        token: Bearer token sent by the client

    Returns:
        Session, or None if unknown or expired
    """
    if not token:
        return None

    storage = get_storage()
    document = await storage.find_one(SESSIONS_COLLECTION, {"token": token})
    if document is None:
        return None

    session = Session.model_validate(document)

    if is_session_expired(session.last_activity, settings.SESSION_TIMEOUT_MINUTES):
        logger.info(
            "Session expired",
            extra={
                "user_id": session.user.id if session.user else None,
                "last_activity": session.last_activity,
                "timeout_minutes": settings.SESSION_TIMEOUT_MINUTES
            }
        )
        await storage.delete_one(SESSIONS_COLLECTION, {"token": token})
        return None

    session.last_activity = utc_now_iso()
    await storage.update_one(
        SESSIONS_COLLECTION,
        {"token": token},
        {"last_activity": session.last_activity}
    )
    return session


async def clear_session(session: Session) -> bool:
    """
    Forgets the identity of a session and deletes its stored copy.

    Returns:
        True if a stored session was removed
    """
    session.user = None

    removed = await get_storage().delete_one(SESSIONS_COLLECTION, {"token": session.token})
    if removed:
        logger.info("Session cleared")
    return removed


async def list_sessions() -> List[Session]:
    """Returns every stored session."""
    documents = await get_storage().find(SESSIONS_COLLECTION)
    return [Session.model_validate(doc) for doc in documents]
