"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class RateLimitError(DomainError):
    """Rate limit exceeded (429)."""
    def __init__(self, message: str = "Rate limit exceeded", details: dict | None = None, headers: dict[str, str] | None = None):
        super().__init__(message, status_code=status.HTTP_429_TOO_MANY_REQUESTS, details=details, headers=headers)


# ── Order lifecycle ─────────────────────────────────────────────────


class EmptyCartError(DomainError):
    """Order placement attempted with no cart lines (400)."""
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InsufficientStockError(DomainError):
    """
    One or more lines ask for more units than are in stock (400).

    `lines` holds one dict per offending line:
    {"productId", "productName", "available", "required"}.
    """
    def __init__(self, lines: list[dict], message: str = "Stock validation failed"):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details={"lines": lines})
        self.lines = lines


class InvalidStateError(DomainError):
    """Operation not legal from the order's current status (400)."""
    def __init__(self, message: str, current_status: str):
        super().__init__(
            message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"currentStatus": current_status},
        )
        self.current_status = current_status


class StorageError(DomainError):
    """Underlying transaction failed; nothing was applied (500)."""
    def __init__(self, message: str = "Storage failure, no changes were applied"):
        super().__init__(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
