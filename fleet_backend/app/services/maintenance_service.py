"""
Maintenance service.

Maintenance history is recorded by the fleet staff and readable by anyone
allowed to see the vehicle, including after the vehicle is soft-deleted.
"""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import ResourceNotFoundError
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.core.policy import Action
from fleet_backend.app.models.maintenance_record import MaintenanceRecord
from fleet_backend.app.repositories.vehicle_repository import VehicleRepository
from fleet_backend.app.services.audit import log_event, AuditAction
from fleet_backend.app.services.authorization import AuthorizationService, VehicleResource


class MaintenanceService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.authz = AuthorizationService(db)
        self.vehicles = VehicleRepository(db)

    async def list_for_vehicle(self, actor: Actor, vehicle_id: int) -> List[MaintenanceRecord]:
        vehicle = await self.vehicles.find_by_id(vehicle_id, include_deleted=True)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)

        await self.authz.check_permission(actor, Action.MAINTENANCE_VIEW, VehicleResource(vehicle_id))
        return await self.vehicles.list_maintenance_records(vehicle_id)

    async def create_record(self, actor: Actor, data: Dict[str, Any]) -> MaintenanceRecord:
        """Record maintenance on a live (not soft-deleted) vehicle."""
        await self.authz.check_permission(actor, Action.MAINTENANCE_CREATE)

        vehicle = await self.vehicles.find_by_id(data["vehicle_id"])
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", data["vehicle_id"])

        record = MaintenanceRecord(**data, created_by_user_id=actor.id)
        self.db.add(record)
        await self.db.flush()

        await log_event(
            db=self.db,
            action=AuditAction.MAINTENANCE_RECORDED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="MaintenanceRecord",
            entity_id=record.id,
            metadata={"vehicle_id": vehicle.id, "maintenance_type": record.maintenance_type.value}
        )
        await self.db.commit()
        await self.db.refresh(record)
        return record
