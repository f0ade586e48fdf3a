"""
User administration endpoints (admin and super admin).

Status and role changes take effect on the target's next request: the
request gate reloads the user row every time.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request

from fleet_backend.app.core.dependencies import get_current_actor, get_user_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.models.enums import UserRole, AccountStatus
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.user import (
    UserResponse, UserListResponse, StatusChangeRequest, RoleChangeRequest, AssignableRolesResponse
)
from fleet_backend.app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.get("", response_model=Envelope[UserListResponse])
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    account_status: Optional[AccountStatus] = Query(None, alias="status", description="Filter by status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    users, total = await service.list_users(actor, role=role, status=account_status, page=page, page_size=page_size)
    return ok(UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size
    ))


@router.get("/roles/assignable", response_model=Envelope[AssignableRolesResponse])
async def list_assignable_roles(
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    """Roles the caller may grant (super admin: up to admin; admin: up to manager)."""
    return ok(AssignableRolesResponse(roles=service.assignable_roles(actor)))


@router.get("/{user_id}", response_model=Envelope[UserResponse])
async def get_user(
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    user = await service.get_user(actor, user_id)
    return ok(UserResponse.model_validate(user))


@router.patch("/{user_id}/status", response_model=Envelope[UserResponse])
async def change_user_status(
    request: Request,
    status_data: StatusChangeRequest,
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    """
    Suspend, deactivate or reactivate a user.

    Leaving the active state revokes all of the user's session tokens.
    """
    user = await service.change_status(
        actor, user_id, status_data.status, reason=status_data.reason, ip_address=_client_ip(request)
    )
    return ok(UserResponse.model_validate(user))


@router.patch("/{user_id}/role", response_model=Envelope[UserResponse])
async def change_user_role(
    request: Request,
    role_data: RoleChangeRequest,
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    user = await service.change_role(
        actor, user_id, role_data.role, reason=role_data.reason, ip_address=_client_ip(request)
    )
    return ok(UserResponse.model_validate(user))
