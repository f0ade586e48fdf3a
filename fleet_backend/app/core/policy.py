"""
Role policy table.

Static mapping from role to the route prefixes it may reach and the actions
it may perform. Each tier is enumerated in full; there is no inheritance
between roles. Lookups for unknown roles return the empty policy.
"""

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from fleet_backend.app.models.enums import UserRole


class Action(str, enum.Enum):
    """Business actions guarded by the authorization service."""
    VEHICLE_VIEW = "vehicle:view"
    VEHICLE_CREATE = "vehicle:create"
    VEHICLE_UPDATE = "vehicle:update"
    VEHICLE_DELETE = "vehicle:delete"
    VEHICLE_STATS = "vehicle:stats"
    DRIVER_LIST = "driver:list"
    DRIVER_ASSIGN = "driver:assign"
    DRIVER_UNASSIGN = "driver:unassign"
    MAINTENANCE_VIEW = "maintenance:view"
    MAINTENANCE_CREATE = "maintenance:create"
    USER_VIEW = "user:view"
    USER_MANAGE = "user:manage"
    AUDIT_VIEW = "audit:view"


@dataclass(frozen=True)
class RolePolicy:
    """Permissions granted to a single role."""
    allowed_route_prefixes: FrozenSet[str] = frozenset()
    allowed_actions: FrozenSet[Action] = frozenset()
    # Row-scoped roles only ever see records linked to their own identity
    row_scoped: bool = False

    def allows_action(self, action: Action) -> bool:
        return action in self.allowed_actions


EMPTY_POLICY = RolePolicy()


ROLE_ACTIONS: Mapping[UserRole, FrozenSet[Action]] = MappingProxyType({
    UserRole.DRIVER: frozenset({
        Action.VEHICLE_VIEW,
        Action.VEHICLE_STATS,
        Action.MAINTENANCE_VIEW,
        Action.USER_VIEW,
    }),
    UserRole.MANAGER: frozenset({
        Action.VEHICLE_VIEW,
        Action.VEHICLE_CREATE,
        Action.VEHICLE_UPDATE,
        Action.VEHICLE_STATS,
        Action.DRIVER_LIST,
        Action.DRIVER_ASSIGN,
        Action.DRIVER_UNASSIGN,
        Action.MAINTENANCE_VIEW,
        Action.MAINTENANCE_CREATE,
        Action.USER_VIEW,
    }),
    UserRole.ADMIN: frozenset({
        Action.VEHICLE_VIEW,
        Action.VEHICLE_CREATE,
        Action.VEHICLE_UPDATE,
        Action.VEHICLE_DELETE,
        Action.VEHICLE_STATS,
        Action.DRIVER_LIST,
        Action.DRIVER_ASSIGN,
        Action.DRIVER_UNASSIGN,
        Action.MAINTENANCE_VIEW,
        Action.MAINTENANCE_CREATE,
        Action.USER_VIEW,
        Action.USER_MANAGE,
    }),
    UserRole.SUPER_ADMIN: frozenset({
        Action.VEHICLE_VIEW,
        Action.VEHICLE_CREATE,
        Action.VEHICLE_UPDATE,
        Action.VEHICLE_DELETE,
        Action.VEHICLE_STATS,
        Action.DRIVER_LIST,
        Action.DRIVER_ASSIGN,
        Action.DRIVER_UNASSIGN,
        Action.MAINTENANCE_VIEW,
        Action.MAINTENANCE_CREATE,
        Action.USER_VIEW,
        Action.USER_MANAGE,
        Action.AUDIT_VIEW,
    }),
})

ROW_SCOPED_ROLES: FrozenSet[UserRole] = frozenset({UserRole.DRIVER})


def normalize_prefix(prefix: str) -> str:
    """Strip trailing slashes so "/v1/vehicles/" and "/v1/vehicles" compare equal."""
    stripped = prefix.rstrip("/")
    return stripped or "/"


def path_matches_prefix(path: str, prefix: str) -> bool:
    """
    Segment-aware prefix match.

    "/v1/vehicles" matches "/v1/vehicles" and "/v1/vehicles/3",
    but not "/v1/vehicles-archive".
    """
    prefix = normalize_prefix(prefix)
    if prefix == "/":
        return True
    path = normalize_prefix(path)
    return path == prefix or path.startswith(prefix + "/")


class RolePolicyTable:
    """
    Immutable role -> RolePolicy lookup.

    Construction fails if a role is missing or has no routes, so a loaded
    table is always total over UserRole.
    """

    def __init__(self, policies: Mapping[UserRole, RolePolicy]):
        missing = [role.value for role in UserRole if role not in policies]
        if missing:
            raise ValueError(f"Role policy table is missing roles: {', '.join(missing)}")
        empty = [role.value for role, policy in policies.items() if not policy.allowed_route_prefixes]
        if empty:
            raise ValueError(f"Roles without route access: {', '.join(empty)}")
        self._policies: Mapping[UserRole, RolePolicy] = MappingProxyType(dict(policies))

    @classmethod
    def from_route_mapping(cls, role_route_prefixes: Mapping[str, Iterable[str]]) -> "RolePolicyTable":
        """
        Build the table from the configured role -> route prefixes mapping.

        Unknown role keys in the configuration are rejected rather than ignored.
        """
        policies: Dict[UserRole, RolePolicy] = {}
        for role_key, prefixes in role_route_prefixes.items():
            role = UserRole.parse(role_key)
            if role is None:
                raise ValueError(f"Unknown role in route configuration: {role_key!r}")
            policies[role] = RolePolicy(
                allowed_route_prefixes=frozenset(normalize_prefix(p) for p in prefixes),
                allowed_actions=ROLE_ACTIONS[role],
                row_scoped=role in ROW_SCOPED_ROLES,
            )
        return cls(policies)

    @classmethod
    def from_settings(cls, settings) -> "RolePolicyTable":
        return cls.from_route_mapping(settings.role_route_prefixes)

    def lookup(self, role) -> RolePolicy:
        """Return the policy for `role`; anything unrecognised gets EMPTY_POLICY."""
        parsed: Optional[UserRole] = UserRole.parse(role)
        if parsed is None:
            return EMPTY_POLICY
        return self._policies.get(parsed, EMPTY_POLICY)

    def route_prefixes_for(self, role) -> FrozenSet[str]:
        return self.lookup(role).allowed_route_prefixes

    def actions_for(self, role) -> FrozenSet[Action]:
        return self.lookup(role).allowed_actions

    def allows_route(self, role, path: str) -> bool:
        return any(path_matches_prefix(path, prefix) for prefix in self.route_prefixes_for(role))

    def allows_action(self, role, action: Action) -> bool:
        return self.lookup(role).allows_action(action)

    def is_row_scoped(self, role) -> bool:
        return self.lookup(role).row_scoped


_default_table: Optional[RolePolicyTable] = None


def get_policy_table() -> RolePolicyTable:
    """Process-wide table built from settings on first use."""
    global _default_table
    if _default_table is None:
        from fleet_backend.app.core.config import settings
        _default_table = RolePolicyTable.from_settings(settings)
    return _default_table
