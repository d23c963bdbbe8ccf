"""
Authentication Service

Login lifecycle: password verification, brute-force lockout and the
TOTP second factor, plus registration and profile updates.

Per-identity states:
    Unlocked (0..threshold-1 failed attempts) -> Locked(until)
    Unlocked + correct password + MFA on      -> MfaPending (signalled only)
    Unlocked + correct password (+ code)      -> Authenticated

MFA failures do not count toward the password lockout counter. That is
a policy choice, kept separate from password lockout on purpose.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from multiguard.api.access.audit import ANONYMOUS_ACTOR, AuditAction, AuditLogger, DEFAULT_IP
from multiguard.api.config import Settings, settings as default_settings
from multiguard.api.db.stores import IdentityStore
from multiguard.api.domain import AccountStatus, Identity, Principal, Role
from multiguard.api.services.passwords import hash_password, verify_password
from multiguard.api.services.totp import verify_totp
from multiguard.core.clock import Clock, get_clock
from multiguard.core.exceptions import (
    AccountLockedError,
    InputError,
    InvalidCredentialsError,
    InvalidMfaCodeError,
    MfaRequiredError,
    StoreUnavailableError,
)


logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service with lockout and MFA gating."""

    def __init__(
        self,
        identities: IdentityStore,
        audit: AuditLogger,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.identities = identities
        self.audit = audit
        self.settings = settings or default_settings
        self.clock = clock or get_clock()

    async def authenticate(
        self,
        email: str,
        password: str,
        mfa_code: Optional[str] = None,
        ip: str = DEFAULT_IP,
    ) -> Principal:
        """
        Run one login attempt.

        Args:
            email: Account email
            password: Plain text password
            mfa_code: TOTP code, required when the account has MFA enabled
            ip: Client address for the audit trail

        Returns:
            The authenticated principal (no secret fields)

        Raises:
            InputError: If email or password is empty
            InvalidCredentialsError: Unknown account or wrong password
            AccountLockedError: Account is locked, or this attempt locked it
            MfaRequiredError: Password correct, second factor missing
            InvalidMfaCodeError: Second factor supplied but wrong
            StoreUnavailableError: Identity lookup or lockout bookkeeping failed
        """
        if not email or not password:
            raise InputError("Missing credentials")

        try:
            identity = await self.identities.find_by_email(email)
        except StoreUnavailableError as e:
            await self.audit.record(
                ANONYMOUS_ACTOR,
                ANONYMOUS_ACTOR,
                AuditAction.LOGIN_ERROR,
                {"email": email, "error": e.code, "operation": e.operation},
                ip=ip,
            )
            raise

        if identity is None:
            logger.info("Login attempt for unknown account")
            await self.audit.record(
                ANONYMOUS_ACTOR,
                ANONYMOUS_ACTOR,
                AuditAction.LOGIN_FAILURE,
                {"email": email, "reason": "unknown_account"},
                ip=ip,
            )
            raise InvalidCredentialsError()

        now = self.clock.now()

        # Locked accounts fail fast, before any password work
        if identity.is_locked(now):
            await self.audit.record(
                identity.id,
                identity.name,
                AuditAction.LOGIN_FAILURE,
                {"reason": "account_locked", "unlock_at": identity.lock_until},
                ip=ip,
            )
            raise AccountLockedError(identity.lock_until)

        # A lapsed lock starts a fresh attempt window
        if identity.lock_until is not None:
            identity.lock_until = None
            identity.login_attempts = 0

        if not verify_password(password, identity.password_hash):
            await self._register_failed_password(identity, ip)

        if identity.is_mfa_enabled:
            if not mfa_code:
                await self.audit.record(
                    identity.id,
                    identity.name,
                    AuditAction.LOGIN_FAILURE,
                    {"reason": "mfa_required"},
                    ip=ip,
                )
                raise MfaRequiredError()

            if not verify_totp(
                mfa_code,
                identity.mfa_secret or "",
                valid_window=self.settings.MFA_VALID_WINDOW,
                at=now,
            ):
                await self.audit.record(
                    identity.id,
                    identity.name,
                    AuditAction.LOGIN_FAILURE,
                    {"reason": "invalid_mfa_code"},
                    ip=ip,
                )
                raise InvalidMfaCodeError()

        identity.login_attempts = 0
        identity.lock_until = None
        await self._save(identity, ip)

        await self.audit.record(
            identity.id,
            identity.name,
            AuditAction.LOGIN_SUCCESS,
            {"status": "Success", "mfa": identity.is_mfa_enabled},
            ip=ip,
        )
        logger.info("Login succeeded for %s", identity.id)
        return identity.to_principal()

    async def _register_failed_password(self, identity: Identity, ip: str) -> None:
        """Count a bad password, lock at the threshold, then raise."""
        identity.login_attempts += 1

        if identity.login_attempts >= self.settings.LOCKOUT_THRESHOLD:
            unlock_at = self.clock.now() + timedelta(minutes=self.settings.LOCKOUT_DURATION_MINUTES)
            identity.lock_until = unlock_at
            await self._save(identity, ip)

            logger.warning("Account %s locked until %s", identity.id, unlock_at.isoformat())
            await self.audit.record(
                identity.id,
                identity.name,
                AuditAction.ACCOUNT_LOCKED,
                {"attempts": identity.login_attempts, "unlock_at": unlock_at},
                ip=ip,
            )
            raise AccountLockedError(unlock_at)

        await self._save(identity, ip)

        await self.audit.record(
            identity.id,
            identity.name,
            AuditAction.LOGIN_FAILURE,
            {"reason": "invalid_password", "attempts": identity.login_attempts},
            ip=ip,
        )
        raise InvalidCredentialsError()

    async def _save(self, identity: Identity, ip: str) -> None:
        """Persist lockout state. A failed save fails the login closed."""
        try:
            await self.identities.save(identity)
        except StoreUnavailableError as e:
            await self.audit.record(
                identity.id,
                identity.name,
                AuditAction.LOGIN_ERROR,
                {"error": e.code, "operation": e.operation},
                ip=ip,
            )
            raise

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.EMPLOYEE,
        department: str = "General",
        clearance_level: int = 1,
    ) -> Principal:
        """
        Register a new identity.

        Args:
            name: Display name
            email: Unique email address
            password: Plain text password, already checked against policy

        Returns:
            The created principal

        Raises:
            InputError: If the email is already registered
        """
        existing = await self.identities.find_by_email(email)
        if existing:
            raise InputError("User already exists", field="email")

        identity = Identity(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            clearance_level=clearance_level,
            department=department,
            status=AccountStatus.ACTIVE,
        )
        await self.identities.save(identity)

        await self.audit.record(
            identity.id,
            identity.name,
            AuditAction.USER_REGISTERED,
            {"email": email},
        )
        return identity.to_principal()

    async def update_profile(
        self,
        identity_id: str,
        name: str,
        password: Optional[str] = None,
    ) -> Principal:
        """
        Rename an identity and optionally change its password.

        Raises:
            InputError: If the identity does not exist
        """
        identity = await self.identities.find_by_id(identity_id)
        if identity is None:
            raise InputError("Unknown identity", field="identity_id")

        identity.name = name
        password_changed = bool(password and password.strip())
        if password_changed:
            identity.password_hash = hash_password(password)

        await self.identities.save(identity)
        await self.audit.record(
            identity.id,
            identity.name,
            AuditAction.PROFILE_UPDATED,
            {"password_changed": password_changed},
        )
        return identity.to_principal()
