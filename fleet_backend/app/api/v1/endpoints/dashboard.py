"""
Dashboard endpoint.

Landing page for every role. Vehicle counts follow the caller's row scope:
drivers see counts over their assigned vehicles only.
"""

from fastapi import APIRouter, Depends

from fleet_backend.app.core.dependencies import get_current_actor, get_vehicle_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.vehicle import VehicleStatsResponse
from fleet_backend.app.services.vehicle_service import VehicleService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=Envelope[VehicleStatsResponse])
async def get_dashboard(
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    stats = await service.get_vehicle_stats(actor)
    return ok(VehicleStatsResponse(**stats))
