from typing import Optional, Any

class UmkmRegistryError(Exception):
    """
    Base exception for the UMKM registry application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class NotConfiguredError(UmkmRegistryError):
    """
    Raised when the remote backend is requested without connection settings.
    """
    def __init__(self, message: str = "Remote backend is not configured", details: Optional[Any] = None):
        super().__init__(message, code="NOT_CONFIGURED", status_code=503, details=details)

class NotFoundOrForbiddenError(UmkmRegistryError):
    """
    Raised when a write is scoped to an id/owner pair that matches no record.
    """
    def __init__(self, message: str = "Record not found or not owned by this user", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND_OR_FORBIDDEN", status_code=404, details=details)

class AuthenticationError(UmkmRegistryError):
    """
    Raised when a request needs a session and has none.
    """
    def __init__(self, message: str = "Authentication required", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class PermissionDeniedError(UmkmRegistryError):
    """
    Raised when the session's role may not perform the request.
    """
    def __init__(self, message: str = "Permission denied", details: Optional[Any] = None):
        super().__init__(message, code="PERMISSION_DENIED", status_code=403, details=details)

class ValidationError(UmkmRegistryError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class InvalidIdentifierError(ValidationError):
    """
    Raised when an identifier that must be a UUID is malformed.
    """
    def __init__(self, message: str = "Identifier is not a valid UUID", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "INVALID_IDENTIFIER"

class StorageError(UmkmRegistryError):
    """
    Raised when the storage backend fails to read or write.
    """
    def __init__(self, message: str = "Storage error", details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_ERROR", status_code=500, details=details)

class RemoteFailureError(StorageError):
    """
    Raised when the remote database reports an error.
    """
    def __init__(self, message: str = "Remote backend error", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "REMOTE_FAILURE"
        self.status_code = 502
