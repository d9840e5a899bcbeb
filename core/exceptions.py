"""
Custom exceptions for the external data ETL pipeline with structured error context.

Each exception carries a context dictionary for debugging and monitoring,
and chains the original exception when one was caught.

Exception Hierarchy:
    ETLException (base)
    ├── ExtractionError
    │   ├── APIExtractionError
    │   │   ├── NetworkError
    │   │   ├── RateLimitError
    │   │   └── AuthenticationError
    │   └── ResourceNotFoundError
    ├── TransformationError
    │   └── NormalizationError
    ├── LoadError
    │   └── UpsertError
    ├── SourceETLError
    └── ETLTimeoutError
"""

from typing import Optional, Dict, Any
from datetime import datetime


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, timestamp, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": error_message(self.original_exception) if self.original_exception else None
        }


def error_message(exc: BaseException) -> str:
    """
    Plain message for an exception, without class name or context.

    Used wherever an error is surfaced as data (ETLResult.error, HTTP bodies,
    audit metadata).
    """
    if isinstance(exc, ETLException):
        return exc.message
    return str(exc) or type(exc).__name__


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data source gateway failures."""
    pass


class APIExtractionError(ExtractionError):
    """
    Exception raised when an upstream HTTP API call fails.

    Context should include:
        - api_url: The API endpoint that failed
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated if large)
        - source_name: Source being fetched
    """
    pass


class NetworkError(APIExtractionError):
    """Timeouts, transport failures and upstream 5xx responses."""
    pass


class RateLimitError(APIExtractionError):
    """Rate limiting errors (HTTP 429)."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after  # Seconds suggested by upstream
        if retry_after:
            self.context["retry_after"] = retry_after


class AuthenticationError(APIExtractionError):
    """Authentication failures (HTTP 401, 403)."""
    pass


class ResourceNotFoundError(ExtractionError):
    """Resource not found errors (HTTP 404)."""
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class NormalizationError(TransformationError):
    """
    Exception raised when a raw record cannot be mapped to its canonical row.

    Context should include:
        - source_name: Name of the data source
        - record_index: Position of the record in the fetched batch
        - field_errors: Field-level validation errors
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class UpsertError(LoadError):
    """
    Exception raised when an upsert fails.

    Context should include:
        - table_name: Target table
        - conflict_fields: Natural key columns
        - row_index: Index of the failing row
    """
    pass


# ============================================================================
# Run Errors
# ============================================================================

class SourceETLError(ETLException):
    """
    One attempt at fetching, normalizing and persisting a source failed.

    The message has the form "<source> data ETL failed: <cause>".
    """
    pass


class ETLTimeoutError(ETLException):
    """The whole run exceeded its wall-clock budget."""
    pass
