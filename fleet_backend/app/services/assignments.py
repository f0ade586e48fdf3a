"""
Vehicle assignment lifecycle.

Manages the vehicle <-> driver edges. At most one edge may exist per
(vehicle, driver) pair: the lookup below gives a fast, friendly error and the
`uq_vehicle_assignment_pair` constraint settles concurrent writers.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import ConflictError, ResourceNotFoundError
from fleet_backend.app.models.vehicle_assignment import VehicleAssignment
from fleet_backend.app.repositories.user_repository import UserRepository
from fleet_backend.app.repositories.vehicle_repository import VehicleRepository

logger = logging.getLogger("fleet.assignments")

ALREADY_ASSIGNED = "Driver is already assigned to this vehicle"


def _is_pair_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig).lower()
    return "uq_vehicle_assignment_pair" in text or (
        "unique" in text and "vehicle_assignments" in text
    )


class AssignmentManager:
    """
    Creates and removes assignment edges. Never commits or rolls back: the
    calling service owns the transaction and must roll it back on error.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.vehicles = VehicleRepository(db)
        self.users = UserRepository(db)

    async def find_pair(self, vehicle_id: int, driver_id: int) -> Optional[VehicleAssignment]:
        result = await self.db.execute(
            select(VehicleAssignment).where(
                VehicleAssignment.vehicle_id == vehicle_id,
                VehicleAssignment.driver_id == driver_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, assignment_id: int) -> Optional[VehicleAssignment]:
        result = await self.db.execute(
            select(VehicleAssignment).where(VehicleAssignment.id == assignment_id)
        )
        return result.scalar_one_or_none()

    async def list_for_vehicle(self, vehicle_id: int) -> List[VehicleAssignment]:
        result = await self.db.execute(
            select(VehicleAssignment)
            .where(VehicleAssignment.vehicle_id == vehicle_id)
            .order_by(VehicleAssignment.assigned_at.desc(), VehicleAssignment.id.desc())
        )
        return list(result.scalars().all())

    async def count_for_vehicle(self, vehicle_id: int) -> int:
        result = await self.db.execute(
            select(func.count(VehicleAssignment.id)).where(VehicleAssignment.vehicle_id == vehicle_id)
        )
        return result.scalar()

    async def assign(self, vehicle_id: int, driver_id: int, actor_id: int) -> VehicleAssignment:
        """
        Create the (vehicle, driver) edge.

        Checked in order: vehicle exists and is not soft-deleted, driver
        exists, pair not already assigned.

        Raises:
            ResourceNotFoundError: vehicle or driver missing
            ConflictError: the pair already has an edge
        """
        vehicle = await self.vehicles.find_by_id(vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)

        driver = await self.users.find_driver(driver_id)
        if not driver:
            raise ResourceNotFoundError("Driver", driver_id)

        if await self.find_pair(vehicle_id, driver_id):
            raise ConflictError(ALREADY_ASSIGNED, details={"vehicle_id": vehicle_id, "driver_id": driver_id})

        assignment = VehicleAssignment(
            vehicle_id=vehicle_id,
            driver_id=driver_id,
            assigned_by_user_id=actor_id,
            assigned_at=datetime.now(timezone.utc),
        )
        self.db.add(assignment)

        try:
            await self.db.flush()  # Raises IntegrityError if a concurrent writer won
        except IntegrityError as exc:
            if not _is_pair_violation(exc):
                raise
            logger.info(
                "Concurrent assignment rejected by store constraint",
                extra={"vehicle_id": vehicle_id, "driver_id": driver_id}
            )
            raise ConflictError(ALREADY_ASSIGNED, details={"vehicle_id": vehicle_id, "driver_id": driver_id})

        return assignment

    async def unassign(self, assignment_id: int) -> VehicleAssignment:
        """
        Hard-delete an assignment edge and return the removed row.

        Raises:
            ResourceNotFoundError: no such assignment
        """
        assignment = await self.find_by_id(assignment_id)
        if not assignment:
            raise ResourceNotFoundError("Assignment", assignment_id)

        await self.db.delete(assignment)
        await self.db.flush()
        return assignment
