"""
User and admin schema definitions.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from fleet_backend.app.models.enums import UserRole, AccountStatus


class UserResponse(BaseModel):
    """Schema for user information."""
    id: int
    email: str
    username: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    status: AccountStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DriverResponse(BaseModel):
    """Driver entry for assignment selection."""
    id: int
    username: str
    full_name: str
    email: str

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserResponse]
    total: int
    page: int
    page_size: int


class StatusChangeRequest(BaseModel):
    """Schema for suspending, deactivating or reactivating a user."""
    status: AccountStatus
    reason: Optional[str] = Field(None, description="Reason for the change (for audit log)")


class RoleChangeRequest(BaseModel):
    """Schema for changing a user's role."""
    role: UserRole
    reason: Optional[str] = Field(None, description="Reason for the change (for audit log)")


class AssignableRolesResponse(BaseModel):
    roles: List[UserRole]


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[int]
    target_user_id: Optional[int]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
