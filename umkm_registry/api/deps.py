"""
umkm_registry/api/deps.py

Purpose: Request dependencies

- Resolves the bearer token into a Session
- Guards endpoints that need a logged-in user or an admin
"""

from fastapi import Depends, Header
from typing import Optional

from umkm_registry.core.exceptions import AuthenticationError, PermissionDeniedError
from umkm_registry.models.user import Session, User
from umkm_registry.services import session_service


def extract_token(authorization: Optional[str]) -> Optional[str]:
    """Returns the token of a 'Bearer <token>' header value."""
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_session(authorization: Optional[str] = Header(default=None)) -> Session:
    """
    Session for the current request.
    Unknown, expired or missing tokens yield a fresh anonymous session.
    """
    session = await session_service.open_session(extract_token(authorization))
    return session or session_service.new_session()


async def require_user(session: Session = Depends(get_session)) -> User:
    if session.user is None:
        raise AuthenticationError()
    return session.user


async def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Only RW admins can view registrants")
    return user
