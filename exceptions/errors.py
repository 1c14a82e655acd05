"""
Custom exception classes for the application.

Every error raised by services derives from AppError so routes can turn it
into the standard {"error": {...}} body.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "IMPORT_JOB_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class AuthenticationError(AppError):
    """Missing, invalid or non-admin credentials (401)."""

    def __init__(self, message: str = "Unauthorized", details: Optional[dict] = None):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


class ConfigurationError(AppError):
    """Required configuration missing (500)."""

    def __init__(self, message: str):
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=message,
            status_code=500
        )


# ===================
# SUPPLIER API ERRORS
# ===================

class SupplierAPIError(ExternalServiceError):
    """ScanSource API returned a non-2xx status or an unreadable body."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(
            service="scansource",
            message=message,
            details={"status": status, "body": body}
        )
        self.status = status
        self.body = body


class TokenFetchError(ExternalServiceError):
    """OAuth client-credentials grant failed."""

    def __init__(self, status: Optional[int], body: Optional[str] = None):
        super().__init__(
            service="scansource_oauth",
            message=f"Token fetch failed: {status}",
            details={"status": status, "body": body}
        )
        self.status = status


class ResolutionError(ValidationError):
    """Input could not be resolved to a ScanSource item under any part number type."""

    def __init__(self, value: str, attempts: Optional[list[dict]] = None):
        super().__init__(
            code="ITEM_RESOLUTION_FAILED",
            message=f"Resolve failed: {value}",
            details={"input": value, "attempts": attempts or []}
        )
        self.value = value


# ===================
# IMPORT JOB ERRORS
# ===================

class ImportJobNotFoundError(NotFoundError):
    """Import job not found."""

    def __init__(self, job_id: str):
        super().__init__(
            resource="Import job",
            identifier=job_id,
            code="IMPORT_JOB_NOT_FOUND"
        )


# ===================
# STOCK BACKFILL ERRORS
# ===================

class StockBackfillError(AppError):
    """Stock backfill transaction failed and was rolled back."""

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(
            code="STOCK_BACKFILL_FAILED",
            message=message,
            status_code=500,
            details={"step": step}
        )
        self.step = step
