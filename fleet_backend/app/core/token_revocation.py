"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
when users are suspended or deactivated. Per-token entries are written by
the authentication service on logout.

Revocation lookups fail closed: if Redis cannot answer, the token is
treated as revoked.
"""

import logging

from fleet_backend.app.core import redis_client as redis_store
from fleet_backend.app.core.config import settings

logger = logging.getLogger("fleet.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _user_revocation_key(user_id: int) -> str:
    return f"{USER_TOKENS_PREFIX}{user_id}:revoked"


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Returns:
        True if token is revoked or the store is unreachable
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis_store.redis_client.exists(key)
        return exists > 0
    except Exception:
        logger.exception("Error checking token revocation, failing closed")
        return True


async def revoke_all_user_tokens(user_id: int) -> bool:
    """
    Revoke all active tokens for a specific user.

    Called when a user is suspended or deactivated to terminate every session.

    Args:
        user_id: User ID whose tokens should be revoked

    Returns:
        True if successful
    """
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis_store.redis_client.setex(_user_revocation_key(user_id), ttl_seconds, "1")
        return True
    except Exception:
        logger.exception("Error revoking all tokens", extra={"user_id": user_id})
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    """
    Check if all tokens for a user have been revoked.

    Returns:
        True if all user tokens are revoked or the store is unreachable
    """
    try:
        exists = await redis_store.redis_client.exists(_user_revocation_key(user_id))
        return exists > 0
    except Exception:
        logger.exception("Error checking user token revocation, failing closed", extra={"user_id": user_id})
        return True


async def clear_user_token_revocation(user_id: int) -> bool:
    """
    Clear the global token revocation flag for a user.

    Called when a suspended or inactive user is reactivated.
    """
    try:
        await redis_store.redis_client.delete(_user_revocation_key(user_id))
        return True
    except Exception:
        logger.exception("Error clearing token revocation", extra={"user_id": user_id})
        return False
