"""
Vehicle-related enumerations.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    ACTIVE = "ACTIVE"  # In service
    MAINTENANCE = "MAINTENANCE"  # In the workshop
    INACTIVE = "INACTIVE"  # Parked / out of service


# Every edge is legal; transitions only happen through an explicit update.
VEHICLE_STATUS_TRANSITIONS = {
    VehicleStatus.ACTIVE: {VehicleStatus.MAINTENANCE, VehicleStatus.INACTIVE},
    VehicleStatus.MAINTENANCE: {VehicleStatus.ACTIVE, VehicleStatus.INACTIVE},
    VehicleStatus.INACTIVE: {VehicleStatus.ACTIVE, VehicleStatus.MAINTENANCE},
}


def can_transition(current: VehicleStatus, target: VehicleStatus) -> bool:
    """Check whether a vehicle may move from `current` to `target`."""
    if current == target:
        return True
    return target in VEHICLE_STATUS_TRANSITIONS.get(current, set())


class MaintenanceType(str, enum.Enum):
    """Maintenance record type."""
    PREVENTIVE = "PREVENTIVE"
    CORRECTIVE = "CORRECTIVE"
    INSPECTION = "INSPECTION"
    TIRE = "TIRE"
    OIL_CHANGE = "OIL_CHANGE"


class MaintenanceStatus(str, enum.Enum):
    """Maintenance record lifecycle."""
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
