"""
Maintenance record endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status

from fleet_backend.app.core.dependencies import get_current_actor, get_maintenance_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.maintenance import MaintenanceRecordCreate, MaintenanceRecordResponse
from fleet_backend.app.services.maintenance_service import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.get("/vehicles/{vehicle_id}", response_model=Envelope[List[MaintenanceRecordResponse]])
async def list_vehicle_maintenance(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    actor: Actor = Depends(get_current_actor),
    service: MaintenanceService = Depends(get_maintenance_service)
):
    records = await service.list_for_vehicle(actor, vehicle_id)
    return ok([MaintenanceRecordResponse.model_validate(r) for r in records])


@router.post("", response_model=Envelope[MaintenanceRecordResponse], status_code=status.HTTP_201_CREATED)
async def create_maintenance_record(
    record_data: MaintenanceRecordCreate,
    actor: Actor = Depends(get_current_actor),
    service: MaintenanceService = Depends(get_maintenance_service)
):
    record = await service.create_record(actor, record_data.model_dump())
    return ok(MaintenanceRecordResponse.model_validate(record))
