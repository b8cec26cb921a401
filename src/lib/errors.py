"""
Error codes and error payloads for the Social Battery API.

Every failure leaves the API as {"code", "message", "details"?} inside
the response envelope (see src/api/schemas.py). Codes map to an HTTP
status and to a message per language; domain exceptions map to a code.
"""

from __future__ import annotations

from typing import Any

from src.lib.exceptions import (
    PersistenceError,
    ServiceError,
    SocialBatteryException,
    ValidationError,
)

# =============================================================================
# Error Code Constants
# =============================================================================

VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
INTERNAL_ERROR = "INTERNAL_ERROR"

_STATUS_BY_CODE: dict[str, int] = {
    VALIDATION_ERROR: 422,
    NOT_FOUND: 404,
    METHOD_NOT_ALLOWED: 405,
    PERSISTENCE_ERROR: 503,
    SERVICE_UNAVAILABLE: 503,
    INTERNAL_ERROR: 500,
}

# =============================================================================
# Message Registry: code -> language -> text ("en" is the fallback)
# =============================================================================

_ERROR_MESSAGES: dict[str, dict[str, str]] = {
    VALIDATION_ERROR: {
        "en": "Invalid input. Please check your request.",
        "de": "Ungueltige Eingabe. Bitte ueberpruefen Sie Ihre Anfrage.",
    },
    NOT_FOUND: {
        "en": "The requested resource was not found.",
        "de": "Die angeforderte Ressource wurde nicht gefunden.",
    },
    METHOD_NOT_ALLOWED: {
        "en": "This method is not allowed for the requested resource.",
        "de": "Diese Methode ist fuer die angeforderte Ressource nicht erlaubt.",
    },
    PERSISTENCE_ERROR: {
        "en": "Your data could not be saved. Changes are kept in memory for now.",
        "de": "Ihre Daten konnten nicht gespeichert werden. Aenderungen bleiben vorerst im Speicher.",
    },
    SERVICE_UNAVAILABLE: {
        "en": "A dependent service is unavailable. Please try again later.",
        "de": "Ein abhaengiger Dienst ist nicht erreichbar. Bitte spaeter erneut versuchen.",
    },
    INTERNAL_ERROR: {
        "en": "An internal error occurred. Please try again.",
        "de": "Ein interner Fehler ist aufgetreten. Bitte erneut versuchen.",
    },
}

_DEFAULT_LANG = "en"


# =============================================================================
# Lookups
# =============================================================================


def status_for(code: str) -> int:
    """HTTP status for an error code (500 for unknown codes)."""
    return _STATUS_BY_CODE.get(code, 500)


def code_for_exception(exc: SocialBatteryException) -> str:
    """Error code for a domain exception."""
    if isinstance(exc, ValidationError):
        return VALIDATION_ERROR
    if isinstance(exc, PersistenceError):
        return PERSISTENCE_ERROR
    if isinstance(exc, ServiceError):
        return SERVICE_UNAVAILABLE
    return INTERNAL_ERROR


def get_error_message(code: str, lang: str = "en") -> str:
    """Message for a code in `lang`, falling back to English, then to a generic text."""
    messages = _ERROR_MESSAGES.get(code, {})
    return messages.get(lang, messages.get(_DEFAULT_LANG, "An error occurred."))


def build_error_response(
    code: str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
    lang: str = "en",
) -> dict[str, Any]:
    """
    Build the error part of the response envelope.

    Args:
        code: Error code constant (e.g. VALIDATION_ERROR)
        message: Explicit message (the registry text for `code` if None)
        details: Extra machine-readable data, omitted when None
        lang: Language for the registry lookup

    Returns:
        {"code": str, "message": str} plus "details" when given
    """
    error: dict[str, Any] = {
        "code": code,
        "message": message if message is not None else get_error_message(code, lang),
    }
    if details is not None:
        error["details"] = details
    return error


__all__ = [
    "VALIDATION_ERROR",
    "NOT_FOUND",
    "METHOD_NOT_ALLOWED",
    "PERSISTENCE_ERROR",
    "SERVICE_UNAVAILABLE",
    "INTERNAL_ERROR",
    "status_for",
    "code_for_exception",
    "get_error_message",
    "build_error_response",
]
