"""
Plain helpers shared by the test modules.
"""

from fleet_backend.app.core.identity import Actor
from fleet_backend.app.core.jwt import create_access_token
from fleet_backend.app.models.user import User


def actor_for(user: User) -> Actor:
    return Actor(id=user.id, role=user.role, status=user.status, username=user.username)


def token_for(user: User) -> str:
    return create_access_token(data={"sub": user.username, "user_id": user.id})


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}
