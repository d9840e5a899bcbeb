"""
Core utilities and configuration for the external data ETL service.

Modules:
    config: Application configuration and environment variable management
    database: Lazily created async engine and session factory
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import get_session_factory
    from core.exceptions import SourceETLError, ETLTimeoutError
    from core.logging import setup_logging

Example:
    setup_logging()

    async with get_session_factory()() as session:
        ...
"""

from core.config import settings
from core.database import SessionFactory, get_session_factory
from core.logging import setup_logging
from core.exceptions import (
    ETLException,
    ExtractionError,
    APIExtractionError,
    NetworkError,
    RateLimitError,
    AuthenticationError,
    ResourceNotFoundError,
    TransformationError,
    NormalizationError,
    LoadError,
    UpsertError,
    SourceETLError,
    ETLTimeoutError,
    error_message,
)

__all__ = [
    "settings",
    "SessionFactory",
    "get_session_factory",
    "setup_logging",
    # Exceptions
    "ETLException",
    "ExtractionError",
    "APIExtractionError",
    "NetworkError",
    "RateLimitError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "TransformationError",
    "NormalizationError",
    "LoadError",
    "UpsertError",
    "SourceETLError",
    "ETLTimeoutError",
    "error_message",
]
