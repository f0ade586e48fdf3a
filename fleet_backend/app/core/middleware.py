"""
Request gate middleware.

Runs on every inbound request before routing. Resolves the identity once,
applies the gate decision, and hands the typed Actor to handlers through
`request.state.actor`.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from fleet_backend.app.core.exceptions import failure_envelope
from fleet_backend.app.core.gate import Allow, Deny, GateRequest, Redirect, authorize
from fleet_backend.app.core.identity import extract_credential

logger = logging.getLogger("fleet.gate")


class RequestGateMiddleware(BaseHTTPMiddleware):
    """
    Applies the request gate using the resolver, policy table and route
    configuration stored on `app.state` at startup.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        state = request.app.state
        gate_request = GateRequest.from_starlette(request)

        identity = None
        if state.route_config.needs_identity(gate_request.path):
            try:
                identity = await state.identity_resolver.resolve(extract_credential(request))
            except Exception:
                # Identity store unreachable: fail closed
                logger.exception("Identity resolution failed", extra={"path": gate_request.path})
                return JSONResponse(
                    status_code=503,
                    content=failure_envelope("Identity service unavailable", "ERR_AUTH_UNAVAILABLE"),
                )

        decision = authorize(gate_request, identity, state.policy_table, state.route_config)
        log_data = {
            "path": gate_request.path,
            "actor_id": identity.id if identity else None,
            "role": identity.role.value if identity else None,
        }

        if isinstance(decision, Redirect):
            logger.info("Gate redirect", extra={**log_data, "target": decision.target, "reason": decision.reason})
            response = RedirectResponse(url=decision.target, status_code=303)
            if decision.reason:
                response.headers["X-Gate-Reason"] = decision.reason
            return response

        if isinstance(decision, Deny):
            logger.warning("Gate deny", extra={**log_data, "reason": decision.reason})
            return JSONResponse(
                status_code=403,
                content=failure_envelope("Access denied", "ERR_FORBIDDEN"),
                headers={"X-Gate-Reason": decision.reason},
            )

        if isinstance(decision, Allow):
            request.state.actor = identity
            return await call_next(request)

        raise TypeError(f"Unknown gate decision: {decision!r}")
