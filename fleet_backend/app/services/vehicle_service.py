"""
Vehicle service.

Business operations on vehicles and their driver assignments. Every method
takes the resolved Actor explicitly and runs the authorization check before
touching the repository. Each mutating method commits exactly once.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import (
    ConflictError, InvalidFieldError, InvalidStateTransitionError, ResourceNotFoundError
)
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.core.policy import Action
from fleet_backend.app.models.user import User
from fleet_backend.app.models.vehicle import Vehicle, normalize_plate
from fleet_backend.app.models.vehicle_assignment import VehicleAssignment
from fleet_backend.app.models.vehicle_enums import VehicleStatus, can_transition
from fleet_backend.app.repositories.user_repository import UserRepository
from fleet_backend.app.repositories.vehicle_repository import VehicleRepository
from fleet_backend.app.services.assignments import AssignmentManager
from fleet_backend.app.services.audit import log_event, AuditAction
from fleet_backend.app.services.authorization import AuthorizationService, VehicleResource

logger = logging.getLogger("fleet.vehicles")

PLATE_TAKEN = "A vehicle with this plate already exists"

# Optional columns that an update may clear
CLEARABLE_FIELDS = {"brand", "year", "fuel_type", "capacity", "notes"}


def _clean_plate(plate: str) -> str:
    try:
        return normalize_plate(plate)
    except ValueError:
        raise InvalidFieldError("plate", "must not be blank")


class VehicleService:
    """Vehicle CRUD and assignment operations with role-based authorization."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.authz = AuthorizationService(db)
        self.vehicles = VehicleRepository(db)
        self.users = UserRepository(db)
        self.assignments = AssignmentManager(db)

    async def list_vehicles(
        self,
        actor: Actor,
        driver_id: Optional[int] = None,
        status: Optional[VehicleStatus] = None,
    ) -> List[Vehicle]:
        """Vehicles visible to the actor; drivers only get their assigned ones."""
        await self.authz.check_permission(actor, Action.VEHICLE_VIEW)
        return await self.vehicles.list_for_actor(actor, driver_id=driver_id, status=status)

    async def get_vehicle(self, actor: Actor, vehicle_id: int) -> Dict[str, Any]:
        """
        Vehicle with assignments and maintenance history.

        Soft-deleted vehicles remain readable by id; they only drop out of lists.
        """
        vehicle = await self.vehicles.find_by_id(vehicle_id, include_deleted=True)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)

        await self.authz.check_permission(actor, Action.VEHICLE_VIEW, VehicleResource(vehicle_id))

        return {
            "vehicle": vehicle,
            "assignments": await self.assignments.list_for_vehicle(vehicle_id),
            "maintenance_records": await self.vehicles.list_maintenance_records(vehicle_id),
        }

    async def create_vehicle(self, actor: Actor, data: Dict[str, Any]) -> Vehicle:
        await self.authz.check_permission(actor, Action.VEHICLE_CREATE)
        data = {**data, "plate": _clean_plate(data["plate"])}

        if await self.vehicles.find_by_plate(data["plate"]):
            raise ConflictError(PLATE_TAKEN, details={"plate": data["plate"]})

        try:
            vehicle = await self.vehicles.create(data)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(PLATE_TAKEN, details={"plate": data["plate"]})

        await log_event(
            db=self.db,
            action=AuditAction.VEHICLE_CREATED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="Vehicle",
            entity_id=vehicle.id,
            metadata={"plate": vehicle.plate, "status": vehicle.status.value}
        )
        await self.db.commit()
        await self.db.refresh(vehicle)

        logger.info("Vehicle created", extra={"vehicle_id": vehicle.id, "actor_id": actor.id})
        return vehicle

    async def update_vehicle(self, actor: Actor, vehicle_id: int, changes: Dict[str, Any]) -> Vehicle:
        """
        Apply a partial update. Status moves along the vehicle state machine;
        plate changes are normalized and re-checked for uniqueness.
        """
        await self.authz.check_permission(actor, Action.VEHICLE_UPDATE)
        changes = {k: v for k, v in changes.items() if v is not None or k in CLEARABLE_FIELDS}

        vehicle = await self.vehicles.find_by_id(vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)

        new_status = changes.get("status")
        if new_status is not None and not can_transition(vehicle.status, new_status):
            raise InvalidStateTransitionError(vehicle.status.value, new_status.value)

        if "plate" in changes:
            changes["plate"] = _clean_plate(changes["plate"])
            existing = await self.vehicles.find_by_plate(changes["plate"])
            if existing and existing.id != vehicle.id:
                raise ConflictError(PLATE_TAKEN, details={"plate": changes["plate"]})

        previous_status = vehicle.status
        try:
            vehicle = await self.vehicles.update(vehicle, changes)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(PLATE_TAKEN)

        await log_event(
            db=self.db,
            action=AuditAction.VEHICLE_UPDATED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="Vehicle",
            entity_id=vehicle.id,
            metadata={
                "fields": sorted(changes.keys()),
                "previous_status": previous_status.value,
                "status": vehicle.status.value
            }
        )
        await self.db.commit()
        await self.db.refresh(vehicle)
        return vehicle

    async def delete_vehicle(self, actor: Actor, vehicle_id: int) -> Vehicle:
        """Soft delete: sets deleted_at, keeps the row and its history."""
        await self.authz.check_permission(actor, Action.VEHICLE_DELETE)

        vehicle = await self.vehicles.find_by_id(vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)

        vehicle = await self.vehicles.soft_delete(vehicle)
        await log_event(
            db=self.db,
            action=AuditAction.VEHICLE_DELETED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="Vehicle",
            entity_id=vehicle.id,
            metadata={"plate": vehicle.plate}
        )
        await self.db.commit()

        logger.info("Vehicle soft-deleted", extra={"vehicle_id": vehicle.id, "actor_id": actor.id})
        return vehicle

    async def assign_driver(self, actor: Actor, vehicle_id: int, driver_id: int) -> VehicleAssignment:
        await self.authz.check_permission(actor, Action.DRIVER_ASSIGN)

        try:
            assignment = await self.assignments.assign(vehicle_id, driver_id, actor.id)
        except (ConflictError, IntegrityError):
            await self.db.rollback()
            raise
        await log_event(
            db=self.db,
            action=AuditAction.DRIVER_ASSIGNED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="VehicleAssignment",
            entity_id=assignment.id,
            target_user_id=driver_id,
            metadata={"vehicle_id": vehicle_id, "driver_id": driver_id}
        )
        await self.db.commit()
        await self.db.refresh(assignment)

        logger.info(
            "Driver assigned",
            extra={"vehicle_id": vehicle_id, "driver_id": driver_id, "actor_id": actor.id}
        )
        return assignment

    async def unassign_driver(self, actor: Actor, assignment_id: int) -> int:
        await self.authz.check_permission(actor, Action.DRIVER_UNASSIGN)

        assignment = await self.assignments.unassign(assignment_id)
        await log_event(
            db=self.db,
            action=AuditAction.DRIVER_UNASSIGNED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="VehicleAssignment",
            entity_id=assignment_id,
            target_user_id=assignment.driver_id,
            metadata={
                "vehicle_id": assignment.vehicle_id,
                "driver_id": assignment.driver_id,
                "assigned_by_user_id": assignment.assigned_by_user_id
            }
        )
        await self.db.commit()
        return assignment_id

    async def list_assignments(self, actor: Actor, vehicle_id: int) -> List[VehicleAssignment]:
        """Assignment edges of one vehicle; drivers only for their own vehicles."""
        vehicle = await self.vehicles.find_by_id(vehicle_id, include_deleted=True)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)

        await self.authz.check_permission(actor, Action.VEHICLE_VIEW, VehicleResource(vehicle_id))
        return await self.assignments.list_for_vehicle(vehicle_id)

    async def get_available_drivers(self, actor: Actor) -> List[User]:
        await self.authz.check_permission(actor, Action.DRIVER_LIST)
        return await self.users.list_available_drivers()

    async def get_active_vehicles(self, actor: Actor) -> List[Vehicle]:
        await self.authz.check_permission(actor, Action.DRIVER_ASSIGN)
        return await self.vehicles.get_active_vehicles()

    async def get_vehicle_stats(self, actor: Actor) -> Dict[str, int]:
        await self.authz.check_permission(actor, Action.VEHICLE_STATS)
        return await self.vehicles.get_stats(actor)
