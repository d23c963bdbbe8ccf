"""
Multiguard - Audit Logging System

Append-only trail of every security-relevant event. Details are
serialised to canonical JSON and always encrypted; only the action tag,
actor and timestamp are stored in the clear.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Union
from uuid import uuid4

from sqlalchemy.ext.asyncio import async_sessionmaker

from multiguard.api.db.models import AuditLogRecord
from multiguard.api.services.encryption import EncryptionService, get_encryption_service
from multiguard.core.clock import Clock, get_clock


logger = logging.getLogger(__name__)


# ============================================================
# Audit Event Types
# ============================================================


class AuditAction(str, Enum):
    """Tags for auditable events."""

    # Authentication
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"
    LOGIN_ERROR = "LOGIN_ERROR"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    MFA_ENABLED = "MFA_ENABLED"

    # Account management
    USER_REGISTERED = "USER_REGISTERED"
    PROFILE_UPDATED = "PROFILE_UPDATED"

    # Access decisions
    MAC_ACCESS_ATTEMPT = "MAC_ACCESS_ATTEMPT"
    DAC_ACCESS_ATTEMPT = "DAC_ACCESS_ATTEMPT"
    RBAC_ACCESS_ATTEMPT = "RBAC_ACCESS_ATTEMPT"
    RUBAC_ACCESS_ATTEMPT = "RuBAC_ACCESS_ATTEMPT"
    ABAC_ACCESS_ATTEMPT = "ABAC_ACCESS_ATTEMPT"


ANONYMOUS_ACTOR = "anonymous"
DEFAULT_IP = "127.0.0.1"


# ============================================================
# Audit Event Structure
# ============================================================


@dataclass(frozen=True)
class AuditEvent:
    """One logged action. Immutable once built."""

    event_id: str
    actor_id: str
    actor_name: str
    action: str
    timestamp: datetime
    encrypted_details: str
    iv: str
    ip: str = DEFAULT_IP

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "event_id": self.event_id,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "action": self.action,
            "timestamp": self.timestamp.isoformat(),
            "encrypted_details": self.encrypted_details,
            "iv": self.iv,
            "ip": self.ip,
        }


def canonical_json(details: Any) -> str:
    """Deterministic JSON text for a details object."""
    return json.dumps(
        _sanitize_for_audit(details),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )


def _sanitize_for_audit(data: Any) -> Any:
    """Remove credential fields from data before it is serialised."""
    sensitive_fields = {
        "password", "password_hash", "secret", "mfa_secret", "token",
        "mfa_code", "proof_code", "api_key", "encryption_key",
    }

    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if str(k).lower() in sensitive_fields else _sanitize_for_audit(v)
            for k, v in data.items()
        }
    elif isinstance(data, (list, tuple, set, frozenset)):
        return [_sanitize_for_audit(item) for item in data]
    else:
        return data


# ============================================================
# Sinks
# ============================================================


class AuditSink(Protocol):
    """Append-only destination for audit events."""

    async def append(self, event: AuditEvent) -> None: ...


class MemoryAuditSink:
    """Keeps events in process memory, in append order."""

    def __init__(self):
        self._events: List[AuditEvent] = []

    async def append(self, event: AuditEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> List[AuditEvent]:
        return list(self._events)

    def for_actor(self, actor_id: str) -> List[AuditEvent]:
        return [e for e in self._events if e.actor_id == actor_id]

    def __len__(self) -> int:
        return len(self._events)


class SqlAuditSink:
    """
    Inserts events into the audit_logs table.

    Each append uses its own short-lived session so a failed audit write
    can never roll back the caller's identity update.
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def append(self, event: AuditEvent) -> None:
        async with self.session_maker() as session:
            session.add(
                AuditLogRecord(
                    event_id=event.event_id,
                    action=event.action,
                    user_id=event.actor_id,
                    username=event.actor_name,
                    ip=event.ip,
                    encrypted_details=event.encrypted_details,
                    iv=event.iv,
                    timestamp=event.timestamp,
                )
            )
            await session.commit()


# ============================================================
# Audit Logger
# ============================================================


class AuditLogger:
    """
    Central audit logging service.

    All audit events flow through this class. record() is best-effort:
    a failure is logged and swallowed, never raised to the caller.
    """

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
        encryption: Optional[EncryptionService] = None,
        clock: Optional[Clock] = None,
    ):
        self.sink = sink if sink is not None else MemoryAuditSink()
        self.encryption = encryption or get_encryption_service()
        self.clock = clock or get_clock()

    async def record(
        self,
        actor_id: str,
        actor_name: str,
        action: Union[AuditAction, str],
        details: Any = None,
        ip: str = DEFAULT_IP,
    ) -> Optional[AuditEvent]:
        """
        Encrypt details and append one audit event.

        Args:
            actor_id: Identity performing the action
            actor_name: Display name of the actor
            action: Event tag
            details: JSON-serialisable payload; encrypted even when empty
            ip: Client address, if known

        Returns:
            The appended event, or None if logging failed
        """
        action_tag = action.value if isinstance(action, AuditAction) else str(action)
        try:
            payload = canonical_json(details if details is not None else {})
            ciphertext, iv = self.encryption.encrypt(payload.encode())

            event = AuditEvent(
                event_id=f"evt_{uuid4().hex[:16]}",
                actor_id=str(actor_id),
                actor_name=actor_name or "Unknown",
                action=action_tag,
                timestamp=self.clock.now(),
                encrypted_details=ciphertext,
                iv=iv,
                ip=ip,
            )

            await self.sink.append(event)
        except Exception:
            logger.exception("Audit logging failed for action %s by %s", action_tag, actor_id)
            return None

        logger.info(
            "AUDIT",
            extra={
                "audit_action": event.action,
                "audit_actor": event.actor_id,
                "audit_event_id": event.event_id,
            },
        )
        return event

    def read_details(self, event: AuditEvent) -> Any:
        """
        Decrypt an event's details for review.

        Raises:
            CipherError: If the event was written under a different key
        """
        plaintext = self.encryption.decrypt(event.encrypted_details, event.iv)
        return json.loads(plaintext.decode())
