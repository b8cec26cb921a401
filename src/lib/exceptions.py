"""
Custom exception hierarchy for the Social Battery core.

Provides structured exception types for all subsystems:
- Configuration and input validation
- Persistence (storage backends, JSON snapshots)
- State transitions and external services

All exceptions inherit from SocialBatteryException, enabling
catch-all for battery-specific errors while keeping the
ability to catch specific error types.
"""

from __future__ import annotations


class SocialBatteryException(Exception):
    """Base exception for all Social Battery errors."""


class ConfigurationError(SocialBatteryException):
    """Missing or invalid environment variables and startup failures."""


class ValidationError(SocialBatteryException):
    """Interaction input rejected before it reaches the log (range, type, duration)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class PersistenceError(SocialBatteryException):
    """Storage backend read/write failures."""


class SerializationError(PersistenceError):
    """JSON encode/decode or snapshot schema failures."""


class StateError(SocialBatteryException):
    """Invalid state transitions or unknown commands."""


class ServiceError(SocialBatteryException):
    """Service failures (unexpected responses, misconfiguration)."""


class ExternalServiceError(ServiceError):
    """External API call failures (Redis, LLM providers, etc.)."""
