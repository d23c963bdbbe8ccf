"""Shared primitives: exception hierarchy and clock capability."""

from multiguard.core.clock import Clock, FixedClock, SystemClock
from multiguard.core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    CipherError,
    InfrastructureError,
    InputError,
    InvalidCredentialsError,
    InvalidMfaCodeError,
    MfaRequiredError,
    MultiguardError,
    PolicyDenied,
    StoreUnavailableError,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "MultiguardError",
    "InputError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidMfaCodeError",
    "AccountLockedError",
    "MfaRequiredError",
    "PolicyDenied",
    "InfrastructureError",
    "StoreUnavailableError",
    "CipherError",
]
