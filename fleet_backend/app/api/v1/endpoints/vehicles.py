"""
Vehicle API Endpoints.

Listing and detail reads are available to every role (drivers are limited to
their assigned vehicles); writes need manager or higher, deletes admin or
higher. Authorization itself lives in VehicleService.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from fleet_backend.app.core.dependencies import get_current_actor, get_vehicle_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.schemas.assignment import AssignmentResponse
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.maintenance import MaintenanceRecordResponse
from fleet_backend.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleResponse, VehicleDetailResponse, DeletedResponse
)
from fleet_backend.app.services.vehicle_service import VehicleService

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get("", response_model=Envelope[List[VehicleResponse]])
async def list_vehicles(
    driver_id: Optional[int] = Query(None, gt=0, description="Only vehicles assigned to this driver"),
    vehicle_status: Optional[VehicleStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    """
    List vehicles visible to the caller, ordered by plate.

    Soft-deleted vehicles are never listed.
    """
    vehicles = await service.list_vehicles(actor, driver_id=driver_id, status=vehicle_status)
    return ok([VehicleResponse.model_validate(v) for v in vehicles])


@router.get("/active", response_model=Envelope[List[VehicleResponse]])
async def list_active_vehicles(
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    """Active vehicles offered when assigning a driver."""
    vehicles = await service.get_active_vehicles(actor)
    return ok([VehicleResponse.model_validate(v) for v in vehicles])


@router.post("", response_model=Envelope[VehicleResponse], status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    vehicle = await service.create_vehicle(actor, vehicle_data.model_dump())
    return ok(VehicleResponse.model_validate(vehicle))


@router.get("/{vehicle_id}", response_model=Envelope[VehicleDetailResponse])
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    """
    Vehicle detail with assignments and maintenance history.

    Still answers for soft-deleted vehicles.
    """
    detail = await service.get_vehicle(actor, vehicle_id)
    response = VehicleDetailResponse.model_validate(detail["vehicle"])
    response.assignments = [AssignmentResponse.model_validate(a) for a in detail["assignments"]]
    response.maintenance_records = [
        MaintenanceRecordResponse.model_validate(r) for r in detail["maintenance_records"]
    ]
    return ok(response)


@router.patch("/{vehicle_id}", response_model=Envelope[VehicleResponse])
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    vehicle = await service.update_vehicle(actor, vehicle_id, vehicle_data.model_dump(exclude_unset=True))
    return ok(VehicleResponse.model_validate(vehicle))


@router.delete("/{vehicle_id}", response_model=Envelope[DeletedResponse])
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    vehicle = await service.delete_vehicle(actor, vehicle_id)
    return ok(DeletedResponse(id=vehicle.id))


@router.get("/{vehicle_id}/assignments", response_model=Envelope[List[AssignmentResponse]])
async def list_vehicle_assignments(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    assignments = await service.list_assignments(actor, vehicle_id)
    return ok([AssignmentResponse.model_validate(a) for a in assignments])
