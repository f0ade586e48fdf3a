"""
Profile endpoint.

Every role may read its own account. Roles with user visibility may pass
`user_id` to read another account; drivers naming anyone else are turned
away by the request gate before reaching this handler.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from fleet_backend.app.core.dependencies import get_current_actor, get_user_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.user import UserResponse
from fleet_backend.app.services.user_service import UserService

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=Envelope[UserResponse])
async def get_profile(
    user_id: Optional[int] = Query(None, gt=0, description="Another user's id (defaults to the caller)"),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    user = await service.get_profile(actor, user_id)
    return ok(UserResponse.model_validate(user))
