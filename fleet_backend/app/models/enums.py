"""
User roles and account status enumerations.

Defines the fixed role tiers for the fleet management system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Tiers are ordered driver < manager < admin < super_admin, but no tier
    inherits from another: every permission is enumerated per role in the
    role policy table.

    Roles:
        DRIVER: Sees only the vehicles assigned to them
        MANAGER: Runs the fleet (vehicles, assignments, maintenance)
        ADMIN: Manager rights plus vehicle deletion and user management
        SUPER_ADMIN: Admin rights plus the audit trail
    """
    DRIVER = "driver"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def parse(cls, value) -> "UserRole | None":
        """Return the matching role, or None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class AccountStatus(str, enum.Enum):
    """Account status enumeration. Accounts are never physically deleted."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
