"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    ExternalServiceError,
    DatabaseError,
    ConfigurationError,

    # Supplier API
    SupplierAPIError,
    TokenFetchError,
    ResolutionError,

    # Import jobs
    ImportJobNotFoundError,

    # Stock backfill
    StockBackfillError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "ExternalServiceError",
    "DatabaseError",
    "ConfigurationError",

    # Supplier API
    "SupplierAPIError",
    "TokenFetchError",
    "ResolutionError",

    # Import jobs
    "ImportJobNotFoundError",

    # Stock backfill
    "StockBackfillError",
]
