"""
User service.

Profile reads and the admin-tier account mutations (status and role).
Status and role are re-read from the database on every request, so a change
made here applies to the target's very next request.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.exceptions import ResourceNotFoundError
from fleet_backend.app.core.identity import Actor
from fleet_backend.app.core.policy import Action
from fleet_backend.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from fleet_backend.app.models.audit_log import AuditLog
from fleet_backend.app.models.enums import UserRole, AccountStatus
from fleet_backend.app.models.user import User
from fleet_backend.app.repositories.user_repository import UserRepository
from fleet_backend.app.services.audit import log_event, get_audit_trail, AuditAction
from fleet_backend.app.services.authorization import AuthorizationService, UserResource

logger = logging.getLogger("fleet.users")


class UserService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.authz = AuthorizationService(db)
        self.users = UserRepository(db)

    async def get_profile(self, actor: Actor, user_id: Optional[int] = None) -> User:
        """The caller's own account, or another one when `user_id` is given."""
        return await self.get_user(actor, actor.id if user_id is None else user_id)

    async def get_user(self, actor: Actor, user_id: int) -> User:
        """Drivers may only read themselves; other roles may read anyone."""
        await self.authz.check_permission(actor, Action.USER_VIEW, UserResource(user_id))

        user = await self.users.find_by_id(user_id)
        if not user:
            raise ResourceNotFoundError("User", user_id)
        return user

    async def list_users(
        self,
        actor: Actor,
        role: Optional[UserRole] = None,
        status: Optional[AccountStatus] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[User], int]:
        await self.authz.check_permission(actor, Action.USER_MANAGE)
        return await self.users.list_users(role=role, status=status, page=page, page_size=page_size)

    def assignable_roles(self, actor: Actor) -> List[UserRole]:
        return self.authz.assignable_roles(actor)

    async def change_status(
        self,
        actor: Actor,
        user_id: int,
        status: AccountStatus,
        reason: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Suspend, deactivate or reactivate a user.

        Leaving ACTIVE also revokes every outstanding session token.
        """
        user = await self.users.find_by_id(user_id)
        if not user:
            raise ResourceNotFoundError("User", user_id)

        await self.authz.ensure_can_manage_user(actor, user.id, user.role)

        previous_status = user.status
        user = await self.users.update_status(user, status)
        await log_event(
            db=self.db,
            action=AuditAction.USER_STATUS_CHANGED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="User",
            entity_id=user.id,
            target_user_id=user.id,
            metadata={
                "previous_status": previous_status.value,
                "status": status.value,
                "reason": reason
            },
            ip_address=ip_address
        )
        await self.db.commit()
        await self.db.refresh(user)

        if status == AccountStatus.ACTIVE:
            await clear_user_token_revocation(user.id)
        else:
            await revoke_all_user_tokens(user.id)

        logger.info(
            "User status changed",
            extra={"user_id": user.id, "status": status.value, "actor_id": actor.id}
        )
        return user

    async def change_role(
        self,
        actor: Actor,
        user_id: int,
        role: UserRole,
        reason: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> User:
        user = await self.users.find_by_id(user_id)
        if not user:
            raise ResourceNotFoundError("User", user_id)

        await self.authz.ensure_can_manage_user(actor, user.id, user.role)
        await self.authz.ensure_can_assign_role(actor, role)

        previous_role = user.role
        user = await self.users.update_role(user, role)
        await log_event(
            db=self.db,
            action=AuditAction.ROLE_CHANGED,
            actor_id=actor.id,
            actor_username=actor.username,
            entity_type="User",
            entity_id=user.id,
            target_user_id=user.id,
            metadata={
                "previous_role": previous_role.value,
                "role": role.value,
                "reason": reason
            },
            ip_address=ip_address
        )
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "User role changed",
            extra={"user_id": user.id, "role": role.value, "actor_id": actor.id}
        )
        return user

    async def get_audit_trail(
        self,
        actor: Actor,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        await self.authz.check_permission(actor, Action.AUDIT_VIEW)
        return await get_audit_trail(
            self.db, action=action, entity_type=entity_type, entity_id=entity_id, limit=limit
        )
