"""
User database model.

Identity is owned by the authentication domain; the fleet domain only
references users by id. Users are never physically deleted.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.enums import UserRole, AccountStatus


class User(Base):
    """
    User model for actors of the fleet system.

    Drivers are users with role=driver; they are linked to vehicles through
    VehicleAssignment rows.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)

    role = Column(Enum(UserRole), default=UserRole.DRIVER, nullable=False, index=True)
    status = Column(Enum(AccountStatus), default=AccountStatus.ACTIVE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}', status='{self.status.value}')>"
