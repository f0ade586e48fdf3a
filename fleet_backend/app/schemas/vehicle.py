"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.models.vehicle import normalize_plate
from fleet_backend.app.schemas.assignment import AssignmentResponse
from fleet_backend.app.schemas.maintenance import MaintenanceRecordResponse


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    plate: str = Field(..., min_length=1, max_length=50, description="Registration plate (stored upper-case)")
    model: str = Field(..., min_length=1, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    fuel_type: Optional[str] = Field(None, max_length=50, description="Fuel type (e.g., Diesel, Electric)")
    capacity: Optional[int] = Field(None, ge=0, description="Seat capacity")
    status: VehicleStatus = Field(default=VehicleStatus.ACTIVE)
    notes: Optional[str] = None

    @field_validator("plate")
    @classmethod
    def validate_plate(cls, v):
        return normalize_plate(v)


class VehicleUpdate(BaseModel):
    """Schema for updating an existing vehicle. Only provided fields change."""
    plate: Optional[str] = Field(None, min_length=1, max_length=50)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    fuel_type: Optional[str] = Field(None, max_length=50)
    capacity: Optional[int] = Field(None, ge=0)
    status: Optional[VehicleStatus] = None
    notes: Optional[str] = None

    @field_validator("plate")
    @classmethod
    def validate_plate(cls, v):
        if v is None:
            return v
        return normalize_plate(v)


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    plate: str
    model: str
    brand: Optional[str]
    year: Optional[int]
    fuel_type: Optional[str]
    capacity: Optional[int]
    status: VehicleStatus
    notes: Optional[str]
    deleted_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleDetailResponse(VehicleResponse):
    """Vehicle with its assignment edges and maintenance history."""
    assignments: List[AssignmentResponse] = []
    maintenance_records: List[MaintenanceRecordResponse] = []


class VehicleStatsResponse(BaseModel):
    """Vehicle counts for the dashboard."""
    total_vehicles: int
    active_vehicles: int
    maintenance_vehicles: int
    inactive_vehicles: int


class DeletedResponse(BaseModel):
    id: int
