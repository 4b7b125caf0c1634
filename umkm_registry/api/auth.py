"""
umkm_registry/api/auth.py

Purpose: Authentication endpoints

- Register, login, logout
- Current identity
- Password change
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from umkm_registry.api.deps import get_session, require_user
from umkm_registry.core.exceptions import AuthenticationError
from umkm_registry.core.logging import get_logger
from umkm_registry.models.user import RegisterData, Session, User
from umkm_registry.schemas.auth import LoginRequest, LoginResponse, ChangePasswordRequest
from umkm_registry.schemas.response import AuthResult
from umkm_registry.services import auth_service, session_service
from utils.constants import MSG_LOGIN_FAILED, MSG_LOGOUT_SUCCESS

logger = get_logger(__name__)
router = APIRouter(prefix="/auth")


@router.post("/register", response_model=AuthResult, status_code=201)
async def register(data: RegisterData):
    """
    Self-registration. The new user still has to log in.
    """
    result = await auth_service.register(data)
    if not result.success:
        logger.info(f"Registration rejected: {result.message}")
        return JSONResponse(status_code=409, content=result.model_dump())
    return result


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest):
    """
    Logs in and returns a bearer token.
    Admins pass the RW they manage in `rw`.
    """
    session = session_service.new_session()

    if not await auth_service.login(session, request.username, request.password, rw=request.rw):
        logger.info("Login rejected")
        raise AuthenticationError(MSG_LOGIN_FAILED)

    return LoginResponse(token=session.token, user=session.user)


@router.post("/logout", response_model=AuthResult)
async def logout(session: Session = Depends(get_session)):
    await auth_service.logout(session)
    return AuthResult(success=True, message=MSG_LOGOUT_SUCCESS)


@router.get("/me", response_model=User)
async def me(user: User = Depends(require_user)):
    return user


@router.post("/change-password", response_model=AuthResult)
async def change_password(request: ChangePasswordRequest, session: Session = Depends(get_session)):
    """
    Changes the logged-in user's password.
    Failed checks come back as 400 with success=false.
    """
    if session.user is None:
        raise AuthenticationError()

    result = await auth_service.change_password(session, request.old_password, request.new_password)
    if not result.success:
        logger.info(f"Password change rejected: {result.message}")
        return JSONResponse(status_code=400, content=result.model_dump())
    return result
