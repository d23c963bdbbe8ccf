"""
MFA Enrollment

Two-step protocol: generate_secret() hands out a fresh, unpersisted
secret; enable() commits it only after a proof code validates against
that same secret.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from multiguard.api.access.audit import AuditAction, AuditLogger
from multiguard.api.config import Settings, settings as default_settings
from multiguard.api.db.stores import IdentityStore
from multiguard.api.domain import Principal
from multiguard.api.services.totp import generate_totp_secret, provisioning_uri, verify_totp
from multiguard.core.clock import Clock, get_clock
from multiguard.core.exceptions import InputError, InvalidMfaCodeError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MfaEnrollment:
    """Secret offered to a user during enrollment. Not yet persisted."""

    secret: str
    email: str
    provisioning_uri: str


class MfaService:
    """TOTP enrollment for authenticated identities."""

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

    async def generate_secret(self, identity_id: str) -> MfaEnrollment:
        """Issue a fresh secret tied to the identity's email."""
        identity = await self.identities.find_by_id(identity_id)
        if identity is None:
            raise InputError("Unknown identity", field="identity_id")

        secret = generate_totp_secret()
        return MfaEnrollment(
            secret=secret,
            email=identity.email,
            provisioning_uri=provisioning_uri(secret, identity.email, self.settings.MFA_ISSUER),
        )

    async def enable(self, identity_id: str, secret: str, proof_code: str) -> Principal:
        """
        Commit a secret once the user proves they captured it.

        Raises:
            InputError: If the identity does not exist or the secret is empty
            InvalidMfaCodeError: If proof_code does not validate against secret
        """
        if not secret:
            raise InputError("Missing MFA secret", field="secret")

        identity = await self.identities.find_by_id(identity_id)
        if identity is None:
            raise InputError("Unknown identity", field="identity_id")

        if not verify_totp(
            proof_code,
            secret,
            valid_window=self.settings.MFA_VALID_WINDOW,
            at=self.clock.now(),
        ):
            logger.info("MFA enrollment proof rejected for %s", identity.id)
            raise InvalidMfaCodeError("Invalid Token")

        identity.mfa_secret = secret
        identity.is_mfa_enabled = True
        await self.identities.save(identity)

        await self.audit.record(identity.id, identity.name, AuditAction.MFA_ENABLED, {})
        return identity.to_principal()
