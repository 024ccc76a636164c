"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to the error part of a response envelope"""
        return {
            "code": self.error_code,
            "message": self.message,
        }


# Input Errors
class InvalidInputError(DomainError):
    """Input has the wrong shape or an unknown section"""
    error_code = "INVALID_INPUT"
    http_status = 400


class MissingFieldError(InvalidInputError):
    """A required input is absent; error_code names it (MISSING_*)"""
    error_code = "MISSING_FIELD"


# Throttling & Availability
class RateLimitError(DomainError):
    """Too many calls for one (action, actor) within the window"""
    error_code = "RATE_LIMIT"
    http_status = 429

    def __init__(self, message: str, retry_after_seconds: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={**(details or {}), "retry_after_seconds": retry_after_seconds})
        self.retry_after_seconds = retry_after_seconds


class MaintenanceError(DomainError):
    """Writes are disabled by the maintenance flag"""
    error_code = "MAINTENANCE"
    http_status = 503


class LockTimeoutError(DomainError):
    """Could not obtain the per-owner draft lock in time"""
    error_code = "LOCK_TIMEOUT"
    http_status = 503


# Authentication & Authorization Errors
class NotAuthorizedError(DomainError):
    """
    Any admin authorization denial.

    Callers only ever see NOT_AUTHORIZED; reason_code keeps the precise cause
    (TOKEN_EXPIRED, ALLOWLIST_DENIED, ...) for audit and logs.
    """
    error_code = "NOT_AUTHORIZED"
    http_status = 403

    def __init__(
        self,
        reason_code: str,
        message: str = "Not authorized",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details={**(details or {}), "reason_code": reason_code})
        self.reason_code = reason_code


class PolicyNotConfiguredError(DomainError):
    """No admin email policy configured; fail closed"""
    error_code = "GOOGLE_POLICY_NOT_CONFIGURED"
    http_status = 500


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


# Storage Errors
class SchemaError(DomainError):
    """Table schema could not be established or a required column is absent"""
    error_code = "SCHEMA_ERROR"
    http_status = 500


# External Service Errors
class ExternalServiceError(DomainError):
    """External service failure"""
    error_code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502


class IdentityServiceUnavailableError(ExternalServiceError):
    """Token verification endpoint could not be reached"""
    error_code = "GOOGLE_VERIFY_UNAVAILABLE"


class IdentityServiceResponseError(ExternalServiceError):
    """Token verification endpoint returned an unreadable body"""
    error_code = "GOOGLE_VERIFY_INVALID_RESPONSE"


# Configuration
class ConfigurationError(DomainError):
    """Server-side configuration is invalid"""
    error_code = "CONFIGURATION_ERROR"
    http_status = 500
