"""
API v1 Router.

Aggregates all v1 API endpoints. Route prefixes here are the ones the
role policy table grants per role.
"""

from fastapi import APIRouter
from fleet_backend.app.api.v1.endpoints import (
    profile, dashboard, vehicles, assignments,
    drivers, maintenance, users, audit
)

router = APIRouter()

# Every role
router.include_router(dashboard.router)
router.include_router(profile.router)
router.include_router(vehicles.router)

# Manager and above
router.include_router(drivers.router)
router.include_router(assignments.router)
router.include_router(maintenance.router)

# Admin and above
router.include_router(users.router)

# Super admin
router.include_router(audit.router)
