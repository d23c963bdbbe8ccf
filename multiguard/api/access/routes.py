"""
Access Check Routes

API endpoints exposing the access decision engine.
"""

from typing import List

from fastapi import APIRouter, Depends, Request

from multiguard.api.access.engine import AccessDecisionEngine
from multiguard.api.access.schemas import (
    AccessCheckRequest,
    AccessDecisionResponse,
    ResourceResponse,
)
from multiguard.api.dependencies import client_ip, get_access_engine, get_current_principal
from multiguard.api.domain import Principal


router = APIRouter()


@router.post(
    "/check",
    response_model=AccessDecisionResponse,
    summary="Evaluate an access request",
)
async def check_access(
    data: AccessCheckRequest,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    engine: AccessDecisionEngine = Depends(get_access_engine),
) -> AccessDecisionResponse:
    """
    Evaluate one access request for the current user.

    A policy denial is a normal 200 response with allowed=false.
    A request missing its model's field answers 400.
    """
    decision = await engine.check(principal, data.to_request(), ip=client_ip(request))
    return AccessDecisionResponse.from_decision(decision)


@router.get(
    "/resources",
    response_model=List[ResourceResponse],
    summary="List resources",
)
async def list_resources(
    principal: Principal = Depends(get_current_principal),
    engine: AccessDecisionEngine = Depends(get_access_engine),
) -> List[ResourceResponse]:
    """All resources with their labels and sharing."""
    resources = await engine.list_resources()
    return [ResourceResponse.from_resource(r) for r in resources]
