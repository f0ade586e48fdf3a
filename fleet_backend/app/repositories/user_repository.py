"""
User repository.

Read access to identities owned by the authentication domain, plus the two
mutations the fleet admin screens perform: status and role changes.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.models.enums import UserRole, AccountStatus
from fleet_backend.app.models.user import User


class UserRepository:
    """Data access for users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_driver(self, driver_id: int) -> Optional[User]:
        """A user counts as a driver only while their role is driver."""
        result = await self.db.execute(
            select(User).where(User.id == driver_id, User.role == UserRole.DRIVER)
        )
        return result.scalar_one_or_none()

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        status: Optional[AccountStatus] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[User], int]:
        """Paginated users, newest first, with the total count."""
        filters = []
        if role is not None:
            filters.append(User.role == role)
        if status is not None:
            filters.append(User.status == status)

        total_result = await self.db.execute(select(func.count(User.id)).where(*filters))
        total = total_result.scalar()

        offset = (page - 1) * page_size
        result = await self.db.execute(
            select(User).where(*filters)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def list_available_drivers(self) -> List[User]:
        """Active drivers, for assignment selection."""
        result = await self.db.execute(
            select(User).where(
                User.role == UserRole.DRIVER,
                User.status == AccountStatus.ACTIVE,
            ).order_by(User.full_name.asc())
        )
        return list(result.scalars().all())

    async def update_status(self, user: User, status: AccountStatus) -> User:
        user.status = status
        await self.db.flush()
        return user

    async def update_role(self, user: User, role: UserRole) -> User:
        user.role = role
        await self.db.flush()
        return user
