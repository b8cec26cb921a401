"""
Lib package for the Social Battery.

Contains shared utilities:
- exceptions.py: Exception hierarchy rooted at SocialBatteryException
- errors.py: Error codes, HTTP statuses and error payloads
- logging.py: structlog + stdlib logging setup
"""

from src.lib.errors import (
    INTERNAL_ERROR,
    METHOD_NOT_ALLOWED,
    NOT_FOUND,
    PERSISTENCE_ERROR,
    SERVICE_UNAVAILABLE,
    VALIDATION_ERROR,
    build_error_response,
    code_for_exception,
    get_error_message,
    status_for,
)
from src.lib.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    PersistenceError,
    SerializationError,
    ServiceError,
    SocialBatteryException,
    StateError,
    ValidationError,
)

__all__ = [
    # Errors
    "INTERNAL_ERROR",
    "METHOD_NOT_ALLOWED",
    "NOT_FOUND",
    "PERSISTENCE_ERROR",
    "SERVICE_UNAVAILABLE",
    "VALIDATION_ERROR",
    "build_error_response",
    "code_for_exception",
    "get_error_message",
    "status_for",
    # Exceptions
    "SocialBatteryException",
    "ConfigurationError",
    "ValidationError",
    "PersistenceError",
    "SerializationError",
    "StateError",
    "ServiceError",
    "ExternalServiceError",
]
