"""
Vehicle Assignment database model.

One row is one edge of the vehicle <-> driver graph. The pair constraint is
the store-level backstop for concurrent assignment of the same pair.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base


class VehicleAssignment(Base):
    """
    Vehicle Assignment model.

    At most one row per (vehicle_id, driver_id). Unassignment deletes the row.
    """
    __tablename__ = "vehicle_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    assigned_by_user_id = Column(Integer, ForeignKey('users.id'), nullable=False)

    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('vehicle_id', 'driver_id', name='uq_vehicle_assignment_pair'),
    )

    def __repr__(self):
        return f"<VehicleAssignment(vehicle_id={self.vehicle_id}, driver_id={self.driver_id})>"
