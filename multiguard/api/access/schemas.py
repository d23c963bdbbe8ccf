"""
Access Check Schemas

Pydantic models for access requests and decisions.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from multiguard.api.access.engine import AccessDecision, AccessModel, AccessRequest
from multiguard.api.domain import Resource


class AccessPayload(BaseModel):
    """Model-specific request fields. RuBAC needs none."""

    sensitivity: Optional[str] = None
    resource_id: Optional[str] = Field(None, alias="resourceId")
    required_role: Optional[str] = Field(None, alias="requiredRole")
    action: Optional[str] = None

    model_config = {"populate_by_name": True}


class AccessCheckRequest(BaseModel):
    """Access check request body."""

    model: AccessModel
    payload: AccessPayload = Field(default_factory=AccessPayload)

    def to_request(self) -> AccessRequest:
        return AccessRequest(
            model=self.model,
            sensitivity=self.payload.sensitivity,
            resource_id=self.payload.resource_id,
            required_role=self.payload.required_role,
            action=self.payload.action,
        )


class AccessDecisionResponse(BaseModel):
    """Outcome of an access check."""

    allowed: bool
    reason: str
    model: str

    @classmethod
    def from_decision(cls, decision: AccessDecision) -> "AccessDecisionResponse":
        return cls(allowed=decision.allowed, reason=decision.reason, model=decision.model.value)


class ResourceResponse(BaseModel):
    """Resource summary for DAC target selection."""

    id: str
    name: str
    sensitivity_level: str
    owner_id: str
    shared_with: List[str]

    @classmethod
    def from_resource(cls, resource: Resource) -> "ResourceResponse":
        return cls(
            id=resource.id,
            name=resource.name,
            sensitivity_level=resource.sensitivity_level.value,
            owner_id=resource.owner_id or "",
            shared_with=sorted(resource.shared_with),
        )
