"""
umkm_registry/schemas/auth.py

Purpose: Auth request/response schemas

- Login with optional RW for admin accounts
- Session token handed back to the client
- Password change payload
"""

from pydantic import BaseModel, Field
from typing import Optional
from umkm_registry.models.user import User


class LoginRequest(BaseModel):
    """Request schema for the login endpoint."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    rw: Optional[str] = Field(
        default=None,
        description="Jurisdiction to log into; required for the default admin password"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "username": "admin",
                "password": "admin",
                "rw": "01"
            }
        }


class LoginResponse(BaseModel):
    """Response schema for a successful login."""

    token: str = Field(..., description="Bearer token for the Authorization header")
    user: User


class ChangePasswordRequest(BaseModel):
    """Request schema for the change-password endpoint."""

    old_password: str
    new_password: str
