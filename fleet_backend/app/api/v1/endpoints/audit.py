"""
Audit trail endpoint (super admin only).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from fleet_backend.app.core.dependencies import get_current_actor, get_user_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.user import AuditLogResponse, AuditTrailResponse
from fleet_backend.app.services.user_service import UserService

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("", response_model=Envelope[AuditTrailResponse])
async def get_audit_trail(
    action: Optional[str] = Query(None, description="Filter by action"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    entity_id: Optional[int] = Query(None, description="Filter by entity id"),
    limit: int = Query(100, ge=1, le=500),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    logs = await service.get_audit_trail(
        actor, action=action, entity_type=entity_type, entity_id=entity_id, limit=limit
    )
    return ok(AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    ))
