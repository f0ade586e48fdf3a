"""
Request-scoped dependencies for FastAPI.

The Actor is resolved once by the request gate middleware; handlers receive
it through `get_current_actor` and pass it explicitly to services.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import AccountInactiveError, UnauthenticatedError
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.db.session import get_db
from fleet_backend.app.services.maintenance_service import MaintenanceService
from fleet_backend.app.services.user_service import UserService
from fleet_backend.app.services.vehicle_service import VehicleService


def get_current_actor(request: Request) -> Actor:
    """
    FastAPI dependency returning the Actor resolved by the gate.

    Raises:
        UnauthenticatedError: no identity on the request (public route)
        AccountInactiveError: identity resolved but not active
    """
    actor = getattr(request.state, "actor", None)
    if actor is None:
        raise UnauthenticatedError()
    if not actor.is_active:
        raise AccountInactiveError(actor.status.value)
    return actor


def get_vehicle_service(db: AsyncSession = Depends(get_db)) -> VehicleService:
    return VehicleService(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def get_maintenance_service(db: AsyncSession = Depends(get_db)) -> MaintenanceService:
    return MaintenanceService(db)
