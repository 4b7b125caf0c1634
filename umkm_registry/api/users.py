"""
umkm_registry/api/users.py

Purpose: Registrant listing for RW admins
"""

from fastapi import APIRouter, Depends
from typing import List

from umkm_registry.api.deps import require_admin
from umkm_registry.models.user import User
from umkm_registry.services import user_service

router = APIRouter(prefix="/users")


@router.get("", response_model=List[User])
async def list_registrants(admin: User = Depends(require_admin)):
    """Users registered in the admin's RW, oldest registration first."""
    records = await user_service.list_users(rw=admin.rw)
    return [user_service.to_public_user(record) for record in records]
