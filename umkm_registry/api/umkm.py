"""
umkm_registry/api/umkm.py

Purpose: Business profile endpoints

- Users see and manage their own profiles
- RW admins see the profiles of residents in their jurisdiction
- Writes are always scoped to the logged-in owner
"""

from fastapi import APIRouter, Depends, HTTPException
from typing import List

from umkm_registry.api.deps import require_user
from umkm_registry.core.logging import get_logger
from umkm_registry.models.umkm import UMKM, UMKMCreate, UMKMUpdate
from umkm_registry.models.user import User
from umkm_registry.services import umkm_service, user_service

logger = get_logger(__name__)
router = APIRouter(prefix="/umkm")


@router.get("", response_model=List[UMKM])
async def list_umkm(user: User = Depends(require_user)):
    """
    Lists profiles visible to the caller, newest first.
    """
    if user.is_admin:
        return await umkm_service.list_all(rw=user.rw)
    return await umkm_service.list_all(owner_id=user.id)


@router.post("", response_model=UMKM, status_code=201)
async def create_umkm(payload: UMKMCreate, user: User = Depends(require_user)):
    return await umkm_service.create(payload, user.id)


@router.get("/{umkm_id}", response_model=UMKM)
async def get_umkm(umkm_id: str, user: User = Depends(require_user)):
    """
    Returns one profile. Profiles the caller may not see are reported
    as missing.
    """
    if user.is_admin:
        record = await umkm_service.get_by_id(umkm_id)
        if record is not None and record.user_id not in await user_service.get_user_ids_in_rw(user.rw):
            logger.info(f"Profile {umkm_id} is outside RW {user.rw}, hiding it from admin")
            record = None
    else:
        record = await umkm_service.get_by_id(umkm_id, owner_id=user.id)

    if record is None:
        raise HTTPException(status_code=404, detail="Business profile not found")
    return record


@router.patch("/{umkm_id}", response_model=UMKM)
async def update_umkm(umkm_id: str, payload: UMKMUpdate, user: User = Depends(require_user)):
    return await umkm_service.update(umkm_id, payload, user.id)


@router.delete("/{umkm_id}")
async def delete_umkm(umkm_id: str, user: User = Depends(require_user)):
    success = await umkm_service.delete(umkm_id, user.id)
    return {"success": success, "id": umkm_id}
