"""Member management endpoints: member list, role and account status changes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_current_actor, get_role_service
from src.api.models import (
    ActorResponse,
    ErrorResponse,
    MemberListResponse,
    RoleChangeRequest,
    StatusChangeRequest,
)
from src.authority.roles import assignable_roles
from src.authority.service import RoleService
from src.models.schemas import Actor, Role

router = APIRouter(prefix="/users", tags=["Users"])

_ERRORS = {
    403: {"model": ErrorResponse, "description": "Change not permitted for this role"},
    404: {"model": ErrorResponse, "description": "Member not found"},
}


@router.get(
    "",
    response_model=MemberListResponse,
    summary="List members",
    responses={403: {"model": ErrorResponse, "description": "Manager role required"}},
)
async def list_members(
    role: Optional[Role] = Query(None, description="Restrict to one role"),
    q: Optional[str] = Query(None, max_length=255, description="Name or email substring"),
    actor: Actor = Depends(get_current_actor),
    service: RoleService = Depends(get_role_service),
) -> MemberListResponse:
    members = await service.list_members(actor, role=role, query=q)
    return MemberListResponse(
        users=[ActorResponse.from_actor(m) for m in members],
        total=len(members),
        assignable_roles=assignable_roles(actor.role),
    )


@router.put(
    "/{user_id}/role",
    response_model=ActorResponse,
    summary="Change a member's role",
    responses=_ERRORS,
)
async def change_role(
    user_id: str,
    request: RoleChangeRequest,
    actor: Actor = Depends(get_current_actor),
    service: RoleService = Depends(get_role_service),
) -> ActorResponse:
    updated = await service.change_role(actor, user_id, request.role)
    return ActorResponse.from_actor(updated)


@router.put(
    "/{user_id}/status",
    response_model=ActorResponse,
    summary="Activate or deactivate a member",
    responses=_ERRORS,
)
async def change_status(
    user_id: str,
    request: StatusChangeRequest,
    actor: Actor = Depends(get_current_actor),
    service: RoleService = Depends(get_role_service),
) -> ActorResponse:
    updated = await service.set_active(actor, user_id, request.is_active)
    return ActorResponse.from_actor(updated)
