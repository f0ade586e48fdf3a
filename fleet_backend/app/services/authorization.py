"""
Authorization service.

Fine-grained, per-operation checks invoked by every business service call,
independently of the request gate. Two tiers:

1. Role membership: the action must be in the actor's policy.
2. Row ownership: for row-scoped roles, the targeted record must belong to
   the actor (an assignment edge for vehicles, their own id for users).
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import PermissionDeniedError
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.core.policy import Action, RolePolicyTable, get_policy_table
from fleet_backend.app.models.enums import UserRole
from fleet_backend.app.repositories.vehicle_repository import VehicleRepository

logger = logging.getLogger("fleet.authz")


@dataclass(frozen=True)
class VehicleResource:
    vehicle_id: int


@dataclass(frozen=True)
class UserResource:
    user_id: int


Resource = Union[VehicleResource, UserResource]


DENIAL_MESSAGES = {
    Action.VEHICLE_VIEW: "Unauthorized: Cannot view vehicles",
    Action.VEHICLE_CREATE: "Unauthorized: Cannot create vehicles",
    Action.VEHICLE_UPDATE: "Unauthorized: Cannot update vehicles",
    Action.VEHICLE_DELETE: "Unauthorized: Cannot delete vehicles",
    Action.VEHICLE_STATS: "Unauthorized: Cannot view vehicle statistics",
    Action.DRIVER_LIST: "Unauthorized: Cannot view drivers",
    Action.DRIVER_ASSIGN: "Unauthorized: Cannot assign drivers",
    Action.DRIVER_UNASSIGN: "Unauthorized: Cannot unassign drivers",
    Action.MAINTENANCE_VIEW: "Unauthorized: Cannot view maintenance records",
    Action.MAINTENANCE_CREATE: "Unauthorized: Cannot record maintenance",
    Action.USER_VIEW: "Unauthorized: Cannot view users",
    Action.USER_MANAGE: "Unauthorized: Cannot manage users",
    Action.AUDIT_VIEW: "Unauthorized: Cannot view the audit trail",
}

# Which roles each tier may hand out or manage
ASSIGNABLE_ROLES = {
    UserRole.SUPER_ADMIN: (UserRole.DRIVER, UserRole.MANAGER, UserRole.ADMIN),
    UserRole.ADMIN: (UserRole.DRIVER, UserRole.MANAGER),
}


class AuthorizationService:
    """
    Service-layer guard.

    Usage:
        authz = AuthorizationService(db)
        await authz.check_permission(actor, Action.DRIVER_ASSIGN)
        await authz.check_permission(actor, Action.VEHICLE_VIEW, VehicleResource(vehicle_id))
    """

    def __init__(self, db: AsyncSession, policy_table: Optional[RolePolicyTable] = None):
        self.db = db
        self.policy = policy_table or get_policy_table()
        self.vehicles = VehicleRepository(db)

    async def check_permission(self, actor: Actor, action: Action, resource: Optional[Resource] = None) -> None:
        """
        Allow or raise PermissionDeniedError.

        Raises:
            PermissionDeniedError: role lacks the action, or a row-scoped actor
                does not own the resource
        """
        if not self.policy.allows_action(actor.role, action):
            self._deny(actor, action, "role")

        if resource is None or not self.policy.is_row_scoped(actor.role):
            return

        if isinstance(resource, VehicleResource):
            assigned = await self.vehicles.is_driver_assigned_to_vehicle(resource.vehicle_id, actor.id)
            if not assigned:
                self._deny(actor, action, "ownership", "Unauthorized: Cannot access this vehicle")
        elif isinstance(resource, UserResource):
            if resource.user_id != actor.id:
                self._deny(actor, action, "ownership", "Unauthorized: Cannot access this user")
        else:
            self._deny(actor, action, "unknown_resource")

    def assignable_roles(self, actor: Actor) -> List[UserRole]:
        """Roles the actor may grant; empty for roles without user management."""
        if not self.policy.allows_action(actor.role, Action.USER_MANAGE):
            return []
        return list(ASSIGNABLE_ROLES.get(actor.role, ()))

    async def ensure_can_manage_user(self, actor: Actor, target_id: int, target_role: UserRole) -> None:
        """
        Admin-tier check for status and role changes on another user.

        The target must currently hold a role the actor could assign, and
        actors never manage their own account.
        """
        await self.check_permission(actor, Action.USER_MANAGE)
        if target_id == actor.id:
            self._deny(actor, Action.USER_MANAGE, "self", "Unauthorized: Cannot change your own account")
        if target_role not in self.assignable_roles(actor):
            self._deny(actor, Action.USER_MANAGE, "tier", "Unauthorized: Cannot manage this user")

    async def ensure_can_assign_role(self, actor: Actor, role: UserRole) -> None:
        await self.check_permission(actor, Action.USER_MANAGE)
        if role not in self.assignable_roles(actor):
            self._deny(actor, Action.USER_MANAGE, "tier", f"Unauthorized: Cannot assign role {role.value}")

    def _deny(self, actor: Actor, action: Action, check: str, message: Optional[str] = None) -> None:
        logger.warning(
            "Permission denied",
            extra={"actor_id": actor.id, "role": actor.role.value, "action": action.value, "check": check}
        )
        raise PermissionDeniedError(message or DENIAL_MESSAGES.get(action, "Insufficient permissions"))
