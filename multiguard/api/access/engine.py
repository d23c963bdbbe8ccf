"""
Multiguard - Access Decision Engine

Evaluates MAC / DAC / RBAC / RuBAC / ABAC requests for an authenticated
principal. Every evaluated request writes exactly one audit event tagged
<MODEL>_ACCESS_ATTEMPT; malformed requests raise InputError instead and
are not recorded as policy decisions.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from multiguard.api.access import policies
from multiguard.api.access.audit import DEFAULT_IP, AuditAction, AuditLogger
from multiguard.api.config import Settings, settings as default_settings
from multiguard.api.db.stores import ResourceStore
from multiguard.api.domain import Principal, Resource, Sensitivity
from multiguard.core.clock import Clock, get_clock
from multiguard.core.exceptions import InputError, PolicyDenied, StoreUnavailableError


logger = logging.getLogger(__name__)


class AccessModel(str, Enum):
    """Closed set of access-control models."""

    MAC = "MAC"
    DAC = "DAC"
    RBAC = "RBAC"
    RUBAC = "RuBAC"
    ABAC = "ABAC"

    @classmethod
    def parse(cls, value: Any) -> "AccessModel":
        try:
            return cls(value)
        except ValueError:
            raise InputError(f"Invalid access type: {value}", field="model")


ACCESS_ATTEMPT_ACTIONS: dict[AccessModel, AuditAction] = {
    AccessModel.MAC: AuditAction.MAC_ACCESS_ATTEMPT,
    AccessModel.DAC: AuditAction.DAC_ACCESS_ATTEMPT,
    AccessModel.RBAC: AuditAction.RBAC_ACCESS_ATTEMPT,
    AccessModel.RUBAC: AuditAction.RUBAC_ACCESS_ATTEMPT,
    AccessModel.ABAC: AuditAction.ABAC_ACCESS_ATTEMPT,
}


@dataclass(frozen=True)
class AccessRequest:
    """Model selector plus the model-specific payload field."""

    model: AccessModel
    sensitivity: Optional[str] = None
    resource_id: Optional[str] = None
    required_role: Optional[str] = None
    action: Optional[str] = None

    def payload(self) -> Dict[str, Any]:
        """Supplied payload fields, as sent by the caller."""
        fields = {
            "sensitivity": self.sensitivity,
            "resourceId": self.resource_id,
            "requiredRole": self.required_role,
            "action": self.action,
        }
        return {k: v for k, v in fields.items() if v is not None}


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of one access check."""

    allowed: bool
    reason: str
    model: AccessModel

    def require(self) -> "AccessDecision":
        """Raise PolicyDenied unless allowed."""
        if not self.allowed:
            raise PolicyDenied(self.reason, model=self.model.value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"allowed": self.allowed, "reason": self.reason, "model": self.model.value}


class AccessDecisionEngine:
    """Stateless evaluator for the five access-control models."""

    def __init__(
        self,
        resources: ResourceStore,
        audit: AuditLogger,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.resources = resources
        self.audit = audit
        self.settings = settings or default_settings
        self.clock = clock or get_clock()
        self._evaluators: Dict[AccessModel, Callable[[Principal, AccessRequest], Awaitable[AccessDecision]]] = {
            AccessModel.MAC: self._evaluate_mac,
            AccessModel.DAC: self._evaluate_dac,
            AccessModel.RBAC: self._evaluate_rbac,
            AccessModel.RUBAC: self._evaluate_rubac,
            AccessModel.ABAC: self._evaluate_abac,
        }
        missing = set(AccessModel) - set(self._evaluators)
        if missing:
            raise RuntimeError(f"No evaluator for access models: {sorted(m.value for m in missing)}")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def check(
        self,
        principal: Principal,
        request: AccessRequest,
        ip: str = DEFAULT_IP,
    ) -> AccessDecision:
        """
        Evaluate a request and record the attempt.

        Raises:
            InputError: If the request lacks the field its model needs
            StoreUnavailableError: If DAC cannot reach the resource store
        """
        model = AccessModel.parse(request.model)
        evaluate = self._evaluators[model]
        action = ACCESS_ATTEMPT_ACTIONS[model]

        try:
            decision = await evaluate(principal, request)
        except StoreUnavailableError as e:
            await self.audit.record(
                principal.id,
                principal.name,
                action,
                {"payload": request.payload(), "allowed": False, "error": e.code},
                ip=ip,
            )
            raise

        logger.debug(
            "%s decision for %s: allowed=%s", model.value, principal.id, decision.allowed
        )
        await self.audit.record(
            principal.id,
            principal.name,
            action,
            {
                "payload": request.payload(),
                "allowed": decision.allowed,
                "reason": decision.reason,
            },
            ip=ip,
        )
        return decision

    async def check_mac(self, principal: Principal, sensitivity: Optional[str]) -> AccessDecision:
        return await self.check(principal, AccessRequest(AccessModel.MAC, sensitivity=sensitivity))

    async def check_dac(self, principal: Principal, resource_id: Optional[str]) -> AccessDecision:
        return await self.check(principal, AccessRequest(AccessModel.DAC, resource_id=resource_id))

    async def check_rbac(self, principal: Principal, required_role: Optional[str]) -> AccessDecision:
        return await self.check(principal, AccessRequest(AccessModel.RBAC, required_role=required_role))

    async def check_rubac(self, principal: Principal) -> AccessDecision:
        return await self.check(principal, AccessRequest(AccessModel.RUBAC))

    async def check_abac(self, principal: Principal, action: Optional[str]) -> AccessDecision:
        return await self.check(principal, AccessRequest(AccessModel.ABAC, action=action))

    async def list_resources(self) -> List[Resource]:
        """All resources, for clients that let a user pick a DAC target."""
        return await self.resources.list_all()

    # ------------------------------------------------------------------
    # Evaluators
    # ------------------------------------------------------------------

    async def _evaluate_mac(self, principal: Principal, request: AccessRequest) -> AccessDecision:
        if not request.sensitivity:
            raise InputError("Missing sensitivity level", field="sensitivity")
        try:
            sensitivity = Sensitivity(request.sensitivity)
        except ValueError:
            raise InputError(f"Unknown sensitivity level: {request.sensitivity}", field="sensitivity")

        if policies.check_mac(principal.clearance_level, sensitivity):
            return AccessDecision(True, "Clearance Level Sufficient", AccessModel.MAC)

        level = policies.required_level(sensitivity)
        return AccessDecision(
            False,
            f"Clearance Level {principal.clearance_level} too low for {sensitivity.value} (requires {level})",
            AccessModel.MAC,
        )

    async def _evaluate_dac(self, principal: Principal, request: AccessRequest) -> AccessDecision:
        if not request.resource_id:
            raise InputError("Missing resource ID", field="resource_id")

        resource = await self.resources.find_by_id(request.resource_id)
        if resource is None:
            return AccessDecision(False, f"Resource {request.resource_id} not found", AccessModel.DAC)

        if policies.check_dac(principal.id, resource):
            return AccessDecision(True, "You are Owner or have Shared access", AccessModel.DAC)
        return AccessDecision(False, "No Discretionary Access granted", AccessModel.DAC)

    async def _evaluate_rbac(self, principal: Principal, request: AccessRequest) -> AccessDecision:
        if not request.required_role:
            raise InputError("Missing required role", field="required_role")

        role = principal.role.value
        if not policies.check_rbac(role, request.required_role):
            return AccessDecision(False, f"User role {role} != {request.required_role}", AccessModel.RBAC)
        if role != request.required_role:
            return AccessDecision(True, "Admin override", AccessModel.RBAC)
        return AccessDecision(True, "Role Match", AccessModel.RBAC)

    async def _evaluate_rubac(self, principal: Principal, request: AccessRequest) -> AccessDecision:
        start = self.settings.BUSINESS_HOURS_START
        end = self.settings.BUSINESS_HOURS_END
        window = f"{start}-{end}"

        if policies.check_rubac(self.clock.local_hour(), start, end):
            return AccessDecision(True, f"Accessing within working hours ({window})", AccessModel.RUBAC)
        return AccessDecision(False, f"Access denied: Outside working hours ({window})", AccessModel.RUBAC)

    async def _evaluate_abac(self, principal: Principal, request: AccessRequest) -> AccessDecision:
        if not request.action:
            raise InputError("Missing action type", field="action")

        if not policies.has_abac_policy(request.action):
            return AccessDecision(False, f"No policy defined for action {request.action}", AccessModel.ABAC)
        if policies.check_abac(principal.attributes, request.action):
            return AccessDecision(True, "Attributes Match Policy", AccessModel.ABAC)
        return AccessDecision(False, "Attributes do not match policy", AccessModel.ABAC)
