"""
Vehicle repository.

Role-aware queries for vehicles. Row scoping lives here and only here:
callers never filter vehicles by role themselves.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.identity import Actor
from fleet_backend.app.core.policy import get_policy_table
from fleet_backend.app.models.maintenance_record import MaintenanceRecord
from fleet_backend.app.models.vehicle import Vehicle, normalize_plate
from fleet_backend.app.models.vehicle_assignment import VehicleAssignment
from fleet_backend.app.models.vehicle_enums import VehicleStatus


def _assigned_to(driver_id: int):
    return exists().where(
        VehicleAssignment.vehicle_id == Vehicle.id,
        VehicleAssignment.driver_id == driver_id,
    )


class VehicleRepository:
    """Data access for vehicles, scoped by the acting role."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def scoped_query(self, actor: Actor, driver_id: Optional[int] = None):
        """
        Base SELECT for vehicles visible to `actor`.

        Always excludes soft-deleted vehicles. Row-scoped roles (drivers) are
        restricted to vehicles with an assignment edge to themselves; others
        may optionally narrow to a given driver.
        """
        query = select(Vehicle).where(Vehicle.deleted_at.is_(None))

        if get_policy_table().is_row_scoped(actor.role):
            query = query.where(_assigned_to(actor.id))
        elif driver_id is not None:
            query = query.where(_assigned_to(driver_id))

        return query

    async def list_for_actor(
        self,
        actor: Actor,
        driver_id: Optional[int] = None,
        status: Optional[VehicleStatus] = None,
    ) -> List[Vehicle]:
        query = self.scoped_query(actor, driver_id=driver_id)
        if status is not None:
            query = query.where(Vehicle.status == status)

        result = await self.db.execute(query.order_by(Vehicle.plate.asc()))
        return list(result.scalars().all())

    async def find_by_id(self, vehicle_id: int, include_deleted: bool = False) -> Optional[Vehicle]:
        query = select(Vehicle).where(Vehicle.id == vehicle_id)
        if not include_deleted:
            query = query.where(Vehicle.deleted_at.is_(None))

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_plate(self, plate: str) -> Optional[Vehicle]:
        result = await self.db.execute(
            select(Vehicle).where(Vehicle.plate == normalize_plate(plate))
        )
        return result.scalar_one_or_none()

    async def create(self, data: Dict[str, Any]) -> Vehicle:
        """Add a new vehicle to the session and flush it. Caller commits."""
        vehicle = Vehicle(**data)
        vehicle.plate = normalize_plate(vehicle.plate)
        if vehicle.status is None:
            vehicle.status = VehicleStatus.ACTIVE

        self.db.add(vehicle)
        await self.db.flush()
        return vehicle

    async def update(self, vehicle: Vehicle, changes: Dict[str, Any]) -> Vehicle:
        for key, value in changes.items():
            if key == "plate":
                value = normalize_plate(value)
            setattr(vehicle, key, value)

        await self.db.flush()
        return vehicle

    async def soft_delete(self, vehicle: Vehicle) -> Vehicle:
        vehicle.deleted_at = datetime.now(timezone.utc)
        await self.db.flush()
        return vehicle

    async def get_stats(self, actor: Actor) -> Dict[str, int]:
        """Vehicle counts by status over the actor's visible set."""
        visible = self.scoped_query(actor).subquery()
        result = await self.db.execute(
            select(visible.c.status, func.count()).group_by(visible.c.status)
        )
        counts = {row[0]: row[1] for row in result.all()}

        def count_for(status: VehicleStatus) -> int:
            # Enum columns come back as members; raw strings on some drivers
            return counts.get(status, counts.get(status.name, 0))

        return {
            "total_vehicles": sum(counts.values()),
            "active_vehicles": count_for(VehicleStatus.ACTIVE),
            "maintenance_vehicles": count_for(VehicleStatus.MAINTENANCE),
            "inactive_vehicles": count_for(VehicleStatus.INACTIVE),
        }

    async def get_active_vehicles(self) -> List[Vehicle]:
        """All non-deleted ACTIVE vehicles, for selection lists."""
        result = await self.db.execute(
            select(Vehicle).where(
                Vehicle.deleted_at.is_(None),
                Vehicle.status == VehicleStatus.ACTIVE,
            ).order_by(Vehicle.plate.asc())
        )
        return list(result.scalars().all())

    async def is_driver_assigned_to_vehicle(self, vehicle_id: int, driver_id: int) -> bool:
        result = await self.db.execute(
            select(VehicleAssignment.id).where(
                VehicleAssignment.vehicle_id == vehicle_id,
                VehicleAssignment.driver_id == driver_id,
            )
        )
        return result.first() is not None

    async def list_maintenance_records(self, vehicle_id: int, limit: Optional[int] = None) -> List[MaintenanceRecord]:
        """Maintenance history, newest first. Independent of soft delete."""
        query = select(MaintenanceRecord).where(
            MaintenanceRecord.vehicle_id == vehicle_id
        ).order_by(MaintenanceRecord.created_at.desc(), MaintenanceRecord.id.desc())
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())
