"""
Vehicle database model.

Vehicles are owned by the fleet and soft-deleted through `deleted_at`.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.vehicle_enums import VehicleStatus


def normalize_plate(plate: str) -> str:
    """
    Plates are stored trimmed and upper-case.

    Raises:
        ValueError: nothing is left after trimming
    """
    normalized = plate.strip().upper()
    if not normalized:
        raise ValueError("Plate must not be blank")
    return normalized


class Vehicle(Base):
    """
    Vehicle model.

    A non-null `deleted_at` hides the vehicle from every list query; the row
    and its maintenance history stay readable by id.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification (plate is stored upper-case)
    plate = Column(String(50), unique=True, nullable=False, index=True)
    model = Column(String(100), nullable=False)
    brand = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)

    # Details
    fuel_type = Column(String(50), nullable=True)  # e.g., "Diesel", "Petrol", "Electric"
    capacity = Column(Integer, nullable=True)  # seats
    notes = Column(Text, nullable=True)

    status = Column(Enum(VehicleStatus), default=VehicleStatus.ACTIVE, nullable=False, index=True)

    # Soft delete
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.plate}', status='{self.status.value}')>"
