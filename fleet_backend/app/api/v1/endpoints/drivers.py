"""
Driver listing for assignment screens.
"""

from typing import List

from fastapi import APIRouter, Depends

from fleet_backend.app.core.dependencies import get_current_actor, get_vehicle_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.user import DriverResponse
from fleet_backend.app.services.vehicle_service import VehicleService

router = APIRouter(prefix="/drivers", tags=["Drivers"])


@router.get("", response_model=Envelope[List[DriverResponse]])
async def list_available_drivers(
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    """Active drivers ordered by name."""
    drivers = await service.get_available_drivers(actor)
    return ok([DriverResponse.model_validate(d) for d in drivers])
