"""
Multiguard - Centralized Exception Hierarchy
============================================

Structured exception types shared by the authentication lifecycle,
the access decision engine and the stores.

Exception Categories:
    - InputError: Missing or malformed request fields (caller's fault)
    - AuthenticationError: Login outcomes callers are expected to branch on
    - PolicyDenied: Well-formed request refused by an access policy
    - InfrastructureError: Store or cipher failures
"""

from datetime import datetime
from typing import Any, Dict, Optional


class MultiguardError(Exception):
    """
    Base exception for all Multiguard errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable tag for programmatic handling
        details: Optional dict with additional context
    """

    default_code: str = "MULTIGUARD_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# INPUT ERRORS
# =============================================================================


class InputError(MultiguardError):
    """Request is missing a required field or carries a malformed one."""

    default_code = "INVALID_INPUT"

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        if field:
            self.details.setdefault("field", field)


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================


class AuthenticationError(MultiguardError):
    """Base exception for login outcomes other than success."""

    default_code = "AUTHENTICATION_FAILED"


class InvalidCredentialsError(AuthenticationError):
    """Unknown account or wrong password. Never says which."""

    default_code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid email or password", **kwargs):
        super().__init__(message, **kwargs)


class InvalidMfaCodeError(AuthenticationError):
    """A TOTP code was supplied but did not validate."""

    default_code = "INVALID_MFA_CODE"

    def __init__(self, message: str = "Invalid MFA code", **kwargs):
        super().__init__(message, **kwargs)


class MfaRequiredError(AuthenticationError):
    """Password was correct but the account needs a second factor."""

    default_code = "MFA_REQUIRED"

    def __init__(self, message: str = "MFA code required", **kwargs):
        super().__init__(message, **kwargs)


class AccountLockedError(AuthenticationError):
    """Account is temporarily locked after repeated failures."""

    default_code = "ACCOUNT_LOCKED"

    def __init__(self, unlock_at: datetime, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or f"Account locked until {unlock_at.isoformat()}",
            **kwargs,
        )
        self.unlock_at = unlock_at
        self.details.setdefault("unlock_at", unlock_at.isoformat())


# =============================================================================
# POLICY ERRORS
# =============================================================================


class PolicyDenied(MultiguardError):
    """A well-formed access request was refused by policy."""

    default_code = "POLICY_DENIED"

    def __init__(self, reason: str, model: Optional[str] = None, **kwargs):
        super().__init__(reason, **kwargs)
        self.reason = reason
        self.model = model
        if model:
            self.details.setdefault("model", model)


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================


class InfrastructureError(MultiguardError):
    """Base exception for failures outside the caller's control."""

    default_code = "INFRASTRUCTURE_ERROR"


class StoreUnavailableError(InfrastructureError):
    """Identity or resource store could not be reached or written."""

    default_code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Store unavailable", operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        if operation:
            self.details.setdefault("operation", operation)


class CipherError(InfrastructureError):
    """Symmetric encryption or decryption failed."""

    default_code = "CIPHER_FAILURE"
