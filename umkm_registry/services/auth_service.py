"""
umkm_registry/services/auth_service.py

Purpose: Authentication and credentials

- Login for RW admins (per jurisdiction) and registered users
- Self-registration of users
- Password changes with admin overrides
- Startup normalization of legacy identifiers and passwords
"""

import secrets
from werkzeug.security import generate_password_hash, check_password_hash
from umkm_registry.db.storage import get_storage, ADMIN_PASSWORDS_COLLECTION
from umkm_registry.core.config import settings
from umkm_registry.core.logging import get_logger, LogContext
from umkm_registry.models.user import User, RegisterData, Session
from umkm_registry.schemas.response import AuthResult
from umkm_registry.services import session_service, user_service
from utils.constants import (
    ADMIN_USERS,
    ADMIN_USERNAME,
    RESERVED_USERNAMES,
    ROLE_USER,
    MSG_REGISTER_SUCCESS,
    MSG_USERNAME_UNAVAILABLE,
    MSG_USERNAME_TAKEN,
    MSG_NO_SESSION,
    MSG_OLD_PASSWORD_WRONG,
    MSG_PASSWORD_TOO_SHORT,
    MSG_PASSWORD_UNCHANGED,
    MSG_PASSWORD_CHANGED,
)
from utils.time_utils import utc_now_iso
from utils.validation_utils import generate_uuid, is_valid_uuid, normalize_rw, sanitize_input
from typing import Optional, Dict, Any

logger = get_logger(__name__)


def get_admin_for_rw(rw: Optional[str]) -> Optional[User]:
    """Returns the predefined admin of a jurisdiction, if there is one."""
    rw = normalize_rw(rw)
    for admin in ADMIN_USERS:
        if admin["rw"] == rw:
            return User.model_validate(admin)
    return None


async def get_admin_override(admin_id: str) -> Optional[Dict[str, Any]]:
    """Returns the stored custom password of an admin, if it was ever changed."""
    return await get_storage().find_one(ADMIN_PASSWORDS_COLLECTION, {"admin_id": admin_id})


async def _set_admin_override(admin_id: str, password_hash: str, changed_at: str):
    storage = get_storage()
    changes = {"admin_id": admin_id, "password_hash": password_hash, "last_password_change": changed_at}
    if await storage.update_one(ADMIN_PASSWORDS_COLLECTION, {"admin_id": admin_id}, changes) is None:
        await storage.insert_one(ADMIN_PASSWORDS_COLLECTION, changes)


async def _verify_admin_password(admin: User, password: str) -> bool:
    """
    Checks an admin password. Once an override exists the default
    password no longer works.
    """
    override = await get_admin_override(admin.id)
    if override:
        return check_password_hash(override["password_hash"], password)
    return secrets.compare_digest(password.encode(), settings.DEFAULT_ADMIN_PASSWORD.encode())


async def _admin_login(password: str, rw: Optional[str]) -> Optional[User]:
    if rw is not None:
        admin = get_admin_for_rw(rw)
        if admin is None:
            logger.warning("Admin login for unknown RW")
            return None

        override = await get_admin_override(admin.id)
        if override:
            if not check_password_hash(override["password_hash"], password):
                if secrets.compare_digest(password.encode(), settings.DEFAULT_ADMIN_PASSWORD.encode()):
                    logger.info("Default admin password rejected, a custom password is set")
                return None
            return admin.model_copy(update={
                "must_change_password": False,
                "last_password_change": override.get("last_password_change"),
            })

        if secrets.compare_digest(password.encode(), settings.DEFAULT_ADMIN_PASSWORD.encode()):
            return admin
        return None

    # No jurisdiction given: only a custom password can tell the admins apart
    for candidate in ADMIN_USERS:
        admin = User.model_validate(candidate)
        override = await get_admin_override(admin.id)
        if override and check_password_hash(override["password_hash"], password):
            return admin.model_copy(update={
                "must_change_password": False,
                "last_password_change": override.get("last_password_change"),
            })

    logger.info("Admin login without RW needs a custom password")
    return None


async def _user_login(username: str, password: str) -> Optional[User]:
    # Usernames are unique only by registration, so scan every entry
    for record in await user_service.list_users():
        if record.get("username") != username:
            continue
        password_hash = record.get("password_hash")
        if password_hash and check_password_hash(password_hash, password):
            return user_service.to_public_user(record)
    return None


async def login(session: Session, username: str, password: str, rw: Optional[str] = None) -> bool:
    """
    Authenticates a user and binds the identity to the session.

    The reserved username "admin" logs into the admin of the jurisdiction
    given by `rw`; every other username is checked against the registry.

    Args:
        session: Session to log in
        username: Username
        password: Plain password
        rw: Jurisdiction of the admin account

    Returns:
        True on success
    """
    with LogContext(operation="login", username=username, rw=rw):
        if username == ADMIN_USERNAME:
            identity = await _admin_login(password, rw)
        else:
            identity = await _user_login(username, password)

        if identity is None:
            logger.info("Login failed")
            return False

        session.user = identity
        await session_service.save_session(session)
        logger.info("Login successful", extra={"user_id": identity.id})
        return True


async def register(data: RegisterData) -> AuthResult:
    """
    Registers a new user. Does not log in.

    Args:
        data: Registration payload

    Returns:
        AuthResult with success flag and message
    """
    with LogContext(operation="register", username=data.username):
        if data.username in RESERVED_USERNAMES:
            logger.info("Registration rejected: reserved username")
            return AuthResult(success=False, message=MSG_USERNAME_UNAVAILABLE)

        if await user_service.get_user_by_username(data.username):
            logger.info("Registration rejected: username taken")
            return AuthResult(success=False, message=MSG_USERNAME_TAKEN)

        record = {
            "id": generate_uuid(),
            "username": data.username,
            "password_hash": generate_password_hash(data.password),
            "name": sanitize_input(data.name, max_length=100) or data.username,
            "role": ROLE_USER,
            "rw": normalize_rw(data.rw),
            "created_at": utc_now_iso(),
        }
        await user_service.add_user(record)

        return AuthResult(success=True, message=MSG_REGISTER_SUCCESS)


async def logout(session: Session):
    """Clears the session."""
    with LogContext(operation="logout", user_id=session.user.id if session.user else None):
        await session_service.clear_session(session)


def _check_new_password(old_password: str, new_password: str) -> Optional[AuthResult]:
    if len(new_password) < settings.MIN_PASSWORD_LENGTH:
        return AuthResult(
            success=False,
            message=MSG_PASSWORD_TOO_SHORT.format(min_length=settings.MIN_PASSWORD_LENGTH)
        )
    if old_password == new_password:
        return AuthResult(success=False, message=MSG_PASSWORD_UNCHANGED)
    return None


async def change_password(session: Session, old_password: str, new_password: str) -> AuthResult:
    """
    Changes the password of the session's user.

    Checks, in order: the old password is correct, the new one is long
    enough, and it differs from the old one. Admin passwords are stored
    as overrides of the shared default.

    Args:
        session: Logged-in session
        old_password: Current password
        new_password: Replacement password

    Returns:
        AuthResult with success flag and message
    """
    user = session.user
    if user is None:
        return AuthResult(success=False, message=MSG_NO_SESSION)

    with LogContext(operation="change_password", user_id=user.id):
        changed_at = utc_now_iso()

        if user.is_admin:
            if not await _verify_admin_password(user, old_password):
                return AuthResult(success=False, message=MSG_OLD_PASSWORD_WRONG)

            failure = _check_new_password(old_password, new_password)
            if failure:
                return failure

            await _set_admin_override(user.id, generate_password_hash(new_password), changed_at)

        else:
            record = await user_service.get_user_by_id(user.id)
            if record is None:
                return AuthResult(success=False, message=MSG_NO_SESSION)

            password_hash = record.get("password_hash")
            if not password_hash or not check_password_hash(password_hash, old_password):
                return AuthResult(success=False, message=MSG_OLD_PASSWORD_WRONG)

            failure = _check_new_password(old_password, new_password)
            if failure:
                return failure

            await user_service.update_user(user.id, {
                "password_hash": generate_password_hash(new_password),
                "last_password_change": changed_at,
            })

        session.user = user.model_copy(update={
            "must_change_password": False,
            "last_password_change": changed_at,
        })
        await session_service.save_session(session)

        logger.info("Password changed")
        return AuthResult(success=True, message=MSG_PASSWORD_CHANGED)


async def normalize_identifiers() -> Dict[str, int]:
    """
    Migrates data written before UUID ids and password hashing.

    - Registry entries without a UUID id get a fresh one
    - Registry entries with a plaintext password are rehashed
    - Stored sessions whose identity id is not a UUID get a fresh id,
      copied onto the registry entry with the same username

    Returns:
        Counts of rewritten users, passwords and sessions
    """
    counts = {"users": 0, "passwords": 0, "sessions": 0}

    with LogContext(operation="normalize_identifiers"):
        storage = get_storage()

        for record in await user_service.list_users():
            old_id = record.get("id")
            user_id = old_id

            if not is_valid_uuid(old_id):
                user_id = generate_uuid()
                await user_service.replace_user_id(record.get("username"), old_id, user_id)
                counts["users"] += 1

            if record.get("password") is not None:
                plaintext = record.get("password") or ""
                await user_service.update_user(user_id, {
                    "password_hash": record.get("password_hash") or generate_password_hash(plaintext),
                    "password": None,
                })
                counts["passwords"] += 1

        for session in await session_service.list_sessions():
            if session.user is None or is_valid_uuid(session.user.id):
                continue

            # Reuse the id the registry entry already migrated to
            record = await user_service.get_user_by_username(session.user.username)
            if record and is_valid_uuid(record.get("id")):
                new_id = record["id"]
            else:
                new_id = generate_uuid()
                if record:
                    await user_service.replace_user_id(session.user.username, record.get("id"), new_id)

            session.user = session.user.model_copy(update={"id": new_id})
            await session_service.save_session(session)
            counts["sessions"] += 1

        if any(counts.values()):
            logger.info("Legacy identities normalized", extra={"counts": counts})
        else:
            logger.debug("No legacy identities found", extra={"storage": storage.name})

    return counts
