from pydantic import BaseModel
from typing import Optional, Any

class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class AuthResult(BaseModel):
    """
    Outcome of register / change-password, reported instead of raised.
    """
    success: bool
    message: str
