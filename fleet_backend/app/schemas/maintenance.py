"""
Maintenance record schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from fleet_backend.app.models.vehicle_enums import MaintenanceType, MaintenanceStatus


class MaintenanceRecordCreate(BaseModel):
    """Schema for recording maintenance on a vehicle."""
    vehicle_id: int = Field(..., gt=0)
    maintenance_type: MaintenanceType
    status: MaintenanceStatus = Field(default=MaintenanceStatus.SCHEDULED)
    description: str = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    cost: Optional[float] = Field(None, ge=0)


class MaintenanceRecordResponse(BaseModel):
    """Schema for maintenance record response."""
    id: int
    vehicle_id: int
    maintenance_type: MaintenanceType
    status: MaintenanceStatus
    description: str
    notes: Optional[str]
    scheduled_date: Optional[datetime]
    completed_date: Optional[datetime]
    cost: Optional[float]
    created_by_user_id: int
    created_at: datetime

    class Config:
        from_attributes = True
