"""
umkm_registry/models/user.py

Purpose: User and session models

- Public user identity (never carries password material)
- Registration payload
- Session holding the current identity
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional


class User(BaseModel):
    """Identity stored in a session and returned by the API."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str
    name: str
    role: Literal["admin", "user"] = "user"
    rw: Optional[str] = None
    created_at: Optional[str] = None
    must_change_password: bool = False
    last_password_change: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class RegisterData(BaseModel):
    """Self-registration payload."""

    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, description="Display name")
    rw: str = Field(..., min_length=1, description="Jurisdiction (RW) code, e.g. '01'")


class Session(BaseModel):
    """
    One client's authentication state.
    `user` is None when nobody is logged in.
    """

    token: str
    user: Optional[User] = None
    created_at: Optional[str] = None
    last_activity: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
