"""
Multiguard - Access & Audit Module

Access-control policies, the decision engine and the encrypted audit log.

Components:
- policies.py: Pure MAC / DAC / RBAC / RuBAC / ABAC predicates
- engine.py: AccessDecisionEngine, request/decision value objects
- audit.py: AuditLogger, AuditEvent, sinks

Usage:
    from multiguard.api.access import (
        AccessDecisionEngine,
        AccessModel,
        AccessRequest,
        AuditLogger,
    )
"""

from multiguard.api.access.audit import (
    AuditAction,
    AuditEvent,
    AuditLogger,
    AuditSink,
    MemoryAuditSink,
    SqlAuditSink,
)
from multiguard.api.access.engine import (
    AccessDecision,
    AccessDecisionEngine,
    AccessModel,
    AccessRequest,
)
from multiguard.api.access.policies import (
    ABAC_POLICIES,
    check_abac,
    check_dac,
    check_mac,
    check_rbac,
    check_rubac,
)

__all__ = [
    # Engine
    "AccessDecisionEngine",
    "AccessDecision",
    "AccessModel",
    "AccessRequest",

    # Policies
    "ABAC_POLICIES",
    "check_mac",
    "check_dac",
    "check_rbac",
    "check_rubac",
    "check_abac",

    # Audit
    "AuditLogger",
    "AuditEvent",
    "AuditAction",
    "AuditSink",
    "MemoryAuditSink",
    "SqlAuditSink",
]
