"""
Request gate.

Route-level decision taken before any handler runs. `authorize` is a pure
function of the request, the resolved identity and the policy data; the
middleware in `core/middleware.py` applies its decision.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

from fleet_backend.app.core.identity import Actor
from fleet_backend.app.core.policy import RolePolicyTable, path_matches_prefix


@dataclass(frozen=True)
class GateRequest:
    """The parts of an inbound request the gate looks at."""
    path: str
    query_items: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_starlette(cls, request) -> "GateRequest":
        return cls(path=request.url.path, query_items=tuple(request.query_params.multi_items()))


@dataclass(frozen=True)
class RouteConfig:
    """Public routes and redirect targets loaded at process start."""
    public_routes: Tuple[str, ...]
    login_routes: Tuple[str, ...]
    login_url: str
    landing_url: str
    target_identity_params: Tuple[str, ...] = field(default=("user_id", "driver_id"))

    @classmethod
    def from_settings(cls, settings) -> "RouteConfig":
        return cls(
            public_routes=tuple(settings.public_routes),
            login_routes=tuple(settings.login_routes),
            login_url=settings.login_url,
            landing_url=settings.landing_url,
            target_identity_params=tuple(settings.target_identity_params),
        )

    def needs_identity(self, path: str) -> bool:
        """Public paths are decided without an identity, except login routes."""
        return not _matches_any(path, self.public_routes) or _matches_any(path, self.login_routes)


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    target: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class Deny:
    reason: str


GateDecision = Union[Allow, Redirect, Deny]


def _matches_any(path: str, prefixes: Sequence[str]) -> bool:
    return any(path_matches_prefix(path, prefix) for prefix in prefixes)


def _login_redirect(routes: RouteConfig, reason: Optional[str] = None) -> Redirect:
    if reason is None:
        return Redirect(target=routes.login_url)
    return Redirect(target=f"{routes.login_url}?{urlencode({'reason': reason})}", reason=reason)


def _landing_redirect(
    identity: Actor,
    policy: RolePolicyTable,
    routes: RouteConfig,
    reason: str,
) -> GateDecision:
    # A role that cannot reach the landing page would bounce forever
    if not policy.allows_route(identity.role, routes.landing_url):
        return Deny(reason=reason)
    return Redirect(target=routes.landing_url, reason=reason)


def _targets_other_actor(request: GateRequest, identity: Actor, routes: RouteConfig) -> bool:
    own_id = str(identity.id)
    return any(
        key in routes.target_identity_params and value != own_id
        for key, value in request.query_items
    )


def authorize(
    request: GateRequest,
    identity: Optional[Actor],
    policy: RolePolicyTable,
    routes: RouteConfig,
) -> GateDecision:
    """
    Decide whether a request may proceed.

    Order:
    1. Public routes are allowed; signed-in users hitting a login route go to the landing page
    2. No identity -> login
    3. Account not active -> login with a reason code
    4. No allowed route prefix for the role -> landing page
    5. Row-scoped roles naming another actor in the query -> landing page
    6. Allow
    """
    path = request.path

    if _matches_any(path, routes.public_routes):
        if identity is not None and identity.is_active and _matches_any(path, routes.login_routes):
            return Redirect(target=routes.landing_url, reason="already_authenticated")
        return Allow()

    if identity is None:
        return _login_redirect(routes)

    if not identity.is_active:
        return _login_redirect(routes, reason=f"account_{identity.status.value}")

    if not policy.allows_route(identity.role, path):
        return _landing_redirect(identity, policy, routes, reason="route_not_permitted")

    if policy.is_row_scoped(identity.role) and _targets_other_actor(request, identity, routes):
        return _landing_redirect(identity, policy, routes, reason="cross_actor_access")

    return Allow()
