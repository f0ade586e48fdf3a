"""
Driver assignment endpoints (manager and above).
"""

from fastapi import APIRouter, Depends, Path, status

from fleet_backend.app.core.dependencies import get_current_actor, get_vehicle_service
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.schemas.assignment import AssignmentCreate, AssignmentResponse
from fleet_backend.app.schemas.common import Envelope, ok
from fleet_backend.app.schemas.vehicle import DeletedResponse
from fleet_backend.app.services.vehicle_service import VehicleService

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.post("", response_model=Envelope[AssignmentResponse], status_code=status.HTTP_201_CREATED)
async def assign_driver(
    assignment_data: AssignmentCreate,
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    """
    Assign a driver to a vehicle.

    Returns 404 if the vehicle or driver does not exist and 409 if the pair
    is already assigned.
    """
    assignment = await service.assign_driver(actor, assignment_data.vehicle_id, assignment_data.driver_id)
    return ok(AssignmentResponse.model_validate(assignment))


@router.delete("/{assignment_id}", response_model=Envelope[DeletedResponse])
async def unassign_driver(
    assignment_id: int = Path(..., description="Assignment ID"),
    actor: Actor = Depends(get_current_actor),
    service: VehicleService = Depends(get_vehicle_service)
):
    removed_id = await service.unassign_driver(actor, assignment_id)
    return ok(DeletedResponse(id=removed_id))
