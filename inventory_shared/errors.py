"""
Shared error handling for the IT Asset Inventory toolkit.
"""

from typing import Dict, Any, Optional

from pydantic import BaseModel

from .logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class InventoryException(Exception):
    """Base exception for inventory toolkit errors."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ApiError(InventoryException):
    """HTTP-layer failure reported by the inventory REST backend."""

    def __init__(
        self,
        status: int,
        message: str,
        body: Any = None,
        retryable: bool = False,
    ):
        super().__init__("API_ERROR", message, {"status": status})
        self.status = status
        self.body = body
        self.retryable = retryable
        self.status_code = status if status >= 400 else 502

    @property
    def is_retryable(self) -> bool:
        """Network failures, server errors and timeouts may be retried."""
        if self.retryable:
            return True
        return self.status == 0 or self.status == 408 or 500 <= self.status < 600


class AuthenticationError(InventoryException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = "/login",
    ):
        details = dict(details or {})
        if redirect_to:
            details.setdefault("redirect_to", redirect_to)
        super().__init__("AUTHENTICATION_ERROR", message, details)
        self.redirect_to = redirect_to


class AuthorizationError(InventoryException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class ValidationError(InventoryException):
    """Validation-related errors.

    ``field_errors`` maps a field name to the message displayed next to it.
    """

    status_code = 422

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        self.field_errors = dict(field_errors or {})
        if self.field_errors:
            details["field_errors"] = self.field_errors
        super().__init__("VALIDATION_ERROR", message, details)


class ImportFileError(InventoryException):
    """Uploaded import file could not be read."""

    def __init__(self, message: str = "Import file could not be read", details: Optional[Dict[str, Any]] = None):
        super().__init__("IMPORT_FILE_ERROR", message, details)


class ExportError(InventoryException):
    """Export artifact could not be produced."""

    status_code = 500

    def __init__(self, message: str = "Export failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXPORT_ERROR", message, details)

