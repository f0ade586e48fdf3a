"""
Identity resolution.

Turns an opaque session credential into a typed Actor, once per request.
Downstream code receives the Actor explicitly and never re-reads raw token
payloads or session data.

Security checks:
1. Validates JWT token signature and expiry
2. Checks if the token has been explicitly revoked
3. Checks if all user tokens have been revoked
4. Loads the user row for the current role and status (no caching)
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from fleet_backend.app.core.config import settings
from fleet_backend.app.core.jwt import decode_access_token
from fleet_backend.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from fleet_backend.app.models.enums import UserRole, AccountStatus
from fleet_backend.app.models.user import User

logger = logging.getLogger("fleet.auth")


@dataclass(frozen=True)
class Actor:
    """An authenticated identity with a role and account status."""
    id: int
    role: UserRole
    status: AccountStatus
    username: str

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


def extract_credential(request: Request) -> Optional[str]:
    """
    Pull the session credential from the request.

    Accepts "Authorization: Bearer <token>" or the session cookie.
    """
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
        return None
    return request.cookies.get(settings.session_cookie_name) or None


class IdentityResolver:
    """
    Resolves session credentials against the JWT secret, the Redis revocation
    store and the users table.

    Args:
        session_factory: callable returning an AsyncSession context manager
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def resolve(self, credential: Optional[str]) -> Optional[Actor]:
        """
        Resolve a credential into an Actor.

        Returns None for missing, malformed, expired or revoked credentials,
        unknown users, and users whose stored role is not one of the four
        known roles.
        """
        if not credential:
            return None

        payload = decode_access_token(credential)
        if payload is None:
            logger.info("Rejected session credential: invalid or expired token")
            return None

        user_id = payload.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.info("Rejected session credential: invalid token payload")
            return None

        if await is_token_revoked(credential):
            logger.info("Rejected session credential: token revoked", extra={"user_id": user_id})
            return None

        if await are_user_tokens_revoked(user_id):
            logger.info("Rejected session credential: user tokens revoked", extra={"user_id": user_id})
            return None

        async with self.session_factory() as db:
            return await self.load_actor(db, user_id)

    @staticmethod
    async def load_actor(db: AsyncSession, user_id: int) -> Optional[Actor]:
        """Build an Actor from the current user row, failing closed on bad data."""
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except LookupError:
            # Stored enum value outside UserRole / AccountStatus
            logger.warning("User row has unrecognised enum value", extra={"user_id": user_id})
            return None

        if not user:
            logger.info("Rejected session credential: user not found", extra={"user_id": user_id})
            return None

        role = UserRole.parse(user.role)
        if role is None:
            logger.warning("User has unrecognised role", extra={"user_id": user_id})
            return None

        try:
            account_status = AccountStatus(user.status)
        except ValueError:
            logger.warning("User has unrecognised account status", extra={"user_id": user_id})
            return None

        return Actor(id=user.id, role=role, status=account_status, username=user.username)
