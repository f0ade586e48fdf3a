"""
Vehicle assignment schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class AssignmentCreate(BaseModel):
    """Schema for assigning a driver to a vehicle."""
    vehicle_id: int = Field(..., gt=0)
    driver_id: int = Field(..., gt=0)


class AssignmentResponse(BaseModel):
    """One vehicle <-> driver edge."""
    id: int
    vehicle_id: int
    driver_id: int
    assigned_by_user_id: int
    assigned_at: datetime

    class Config:
        from_attributes = True
