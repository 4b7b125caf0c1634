"""
umkm_registry/services/umkm_service.py

Purpose: Business profile (UMKM) record store

- Lists profiles by owner or by jurisdiction (RW), newest first
- Creates, updates and deletes profiles scoped to their owner
- Read failures are logged and reported as empty results
- Write failures are logged and re-raised
"""

from pydantic import ValidationError as PydanticValidationError
from umkm_registry.db.storage import get_storage, UMKM_COLLECTION
from umkm_registry.core.config import settings
from umkm_registry.core.exceptions import (
    InvalidIdentifierError,
    NotFoundOrForbiddenError,
    StorageError,
)
from umkm_registry.core.logging import get_logger, LogContext
from umkm_registry.models.umkm import UMKM, UMKMCreate, UMKMUpdate
from umkm_registry.services.user_service import get_user_ids_in_rw
from utils.time_utils import utc_now_iso
from utils.validation_utils import is_valid_uuid, generate_uuid
from typing import Optional, Dict, Any, List, Union

logger = get_logger(__name__)

NEWEST_FIRST = ("created_at", True)

# Set by the store, never by a payload
PROTECTED_FIELDS = ("id", "user_id", "created_at", "updated_at")

REQUIRED_FIELDS = ("nama_usaha", "pemilik", "jenis_usaha", "status")


def _to_payload(payload: Union[UMKMCreate, UMKMUpdate, Dict[str, Any]], partial: bool) -> Dict[str, Any]:
    if isinstance(payload, dict):
        model = UMKMUpdate if partial else UMKMCreate
        payload = model.model_validate(payload)

    data = payload.model_dump(exclude_unset=partial)
    if not partial:
        data = {key: value for key, value in data.items() if value is not None}

    for field in PROTECTED_FIELDS:
        data.pop(field, None)

    # Required fields can be changed but never cleared
    for field in REQUIRED_FIELDS:
        if field in data and data[field] is None:
            del data[field]
    return data


def _to_record(document: Dict[str, Any]) -> Optional[UMKM]:
    """Stored documents that no longer fit the model are logged and skipped."""
    try:
        return UMKM.model_validate(document)
    except PydanticValidationError as e:
        logger.warning(
            f"Skipping malformed business profile {document.get('id')!r}: "
            f"{e.error_count()} invalid field(s)"
        )
        return None


def _resolve_owner_id(owner_id: Optional[str]) -> str:
    """
    Returns the owner id to store a new profile under.

    Raises:
        InvalidIdentifierError: If owner_id is malformed and repair is disabled
    """
    if is_valid_uuid(owner_id):
        return owner_id

    if not settings.REPAIR_INVALID_OWNER_ID:
        raise InvalidIdentifierError(
            "Owner id is not a valid UUID",
            details={"owner_id": owner_id}
        )

    repaired = generate_uuid()
    logger.warning(
        f"Replacing invalid owner id {owner_id!r} with {repaired}; "
        "the new profile will not be linked to the original owner"
    )
    return repaired


async def list_all(owner_id: Optional[str] = None, rw: Optional[str] = None) -> List[UMKM]:
    """
    Lists business profiles, newest first.

    A jurisdiction takes precedence over an owner filter. Storage errors
    are logged and reported as an empty list.

    Args:
        owner_id: Only profiles owned by this user
        rw: Only profiles owned by users registered in this RW

    Returns:
        Matching profiles (possibly empty)
    """
    with LogContext(operation="list_all", user_id=owner_id, rw=rw):
        logger.debug("Listing business profiles")

        try:
            filters: Dict[str, Any] = {}

            if rw is not None:
                owner_ids = await get_user_ids_in_rw(rw)
                if not owner_ids:
                    logger.info("No users registered in RW, nothing to list")
                    return []
                filters["user_id"] = owner_ids

            elif owner_id is not None:
                if not is_valid_uuid(owner_id):
                    logger.info("Owner id is not a valid UUID, returning empty list")
                    return []
                filters["user_id"] = owner_id

            documents = await get_storage().find(UMKM_COLLECTION, filters, sort=NEWEST_FIRST)
            records = (_to_record(doc) for doc in documents)
            return [record for record in records if record is not None]

        except StorageError as e:
            logger.error(f"Failed to list business profiles: {e.message}")
            return []


async def create(payload: Union[UMKMCreate, Dict[str, Any]], owner_id: str) -> UMKM:
    """
    Registers a new business profile for an owner.

    Args:
        payload: Profile fields
        owner_id: Id of the owning user

    Returns:
        The stored profile with its assigned id and timestamps

    Raises:
        InvalidIdentifierError: If owner_id is not a UUID (unless repair is enabled)
        StorageError: If the backend fails
    """
    with LogContext(operation="create", user_id=owner_id):
        data = _to_payload(payload, partial=False)
        valid_owner_id = _resolve_owner_id(owner_id)

        now = utc_now_iso()
        record = {
            **data,
            "id": generate_uuid(),
            "user_id": valid_owner_id,
            "tanggal_daftar": data.get("tanggal_daftar") or now,
            "created_at": now,
            "updated_at": now,
        }

        try:
            stored = await get_storage().insert_one(UMKM_COLLECTION, record)
        except StorageError as e:
            logger.error(f"Failed to create business profile: {e.message}")
            raise

        logger.info("Business profile created", extra={"umkm_id": record["id"]})
        return UMKM.model_validate(stored)


async def update(umkm_id: str, payload: Union[UMKMUpdate, Dict[str, Any]], owner_id: str) -> UMKM:
    """
    Updates a profile owned by `owner_id`.

    Args:
        umkm_id: Profile id
        payload: Fields to change
        owner_id: Id of the requesting owner

    Returns:
        The updated profile

    Raises:
        InvalidIdentifierError: If owner_id is not a UUID
        NotFoundOrForbiddenError: If no profile matches both id and owner
        StorageError: If the backend fails
    """
    with LogContext(operation="update", umkm_id=umkm_id, user_id=owner_id):
        if not is_valid_uuid(owner_id):
            raise InvalidIdentifierError("Owner id is not a valid UUID", details={"owner_id": owner_id})

        changes = _to_payload(payload, partial=True)
        changes["updated_at"] = utc_now_iso()

        try:
            updated = await get_storage().update_one(
                UMKM_COLLECTION,
                {"id": umkm_id, "user_id": owner_id},
                changes
            )
        except StorageError as e:
            logger.error(f"Failed to update business profile: {e.message}")
            raise

        if updated is None:
            logger.warning("Update rejected: no profile with this id for this owner")
            raise NotFoundOrForbiddenError()

        logger.info("Business profile updated", extra={"fields": sorted(changes)})
        return UMKM.model_validate(updated)


async def delete(umkm_id: str, owner_id: str) -> bool:
    """
    Deletes a profile owned by `owner_id`.

    Returns:
        True once deleted

    Raises:
        InvalidIdentifierError: If owner_id is not a UUID
        NotFoundOrForbiddenError: If no profile matches both id and owner
        StorageError: If the backend fails
    """
    with LogContext(operation="delete", umkm_id=umkm_id, user_id=owner_id):
        if not is_valid_uuid(owner_id):
            raise InvalidIdentifierError("Owner id is not a valid UUID", details={"owner_id": owner_id})

        try:
            deleted = await get_storage().delete_one(
                UMKM_COLLECTION,
                {"id": umkm_id, "user_id": owner_id}
            )
        except StorageError as e:
            logger.error(f"Failed to delete business profile: {e.message}")
            raise

        if not deleted:
            logger.warning("Delete rejected: no profile with this id for this owner")
            raise NotFoundOrForbiddenError()

        logger.info("Business profile deleted")
        return True


async def get_by_id(umkm_id: str, owner_id: Optional[str] = None) -> Optional[UMKM]:
    """
    Retrieves a profile by id.

    When `owner_id` is given, profiles of other owners are reported as
    missing. Storage errors are logged and reported as None.

    Args:
        umkm_id: Profile id
        owner_id: Optional owner the profile must belong to

    Returns:
        The profile, or None
    """
    with LogContext(operation="get_by_id", umkm_id=umkm_id, user_id=owner_id):
        if owner_id is not None and not is_valid_uuid(owner_id):
            logger.info("Owner id is not a valid UUID, returning nothing")
            return None

        try:
            document = await get_storage().find_one(UMKM_COLLECTION, {"id": umkm_id})
        except StorageError as e:
            logger.error(f"Failed to read business profile: {e.message}")
            return None

        if document is None:
            return None

        if owner_id is not None and document.get("user_id") != owner_id:
            logger.info("Profile belongs to another owner, hiding it")
            return None

        return _to_record(document)
