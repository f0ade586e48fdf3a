"""
FastAPI Application Entry Point.

This is the main application file for the Fleet Access Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fleet_backend.app.core.config import settings
from fleet_backend.app.api.v1.router import router as api_v1_router
from fleet_backend.app.core.gate import RouteConfig
from fleet_backend.app.core.identity import IdentityResolver
from fleet_backend.app.core.middleware import RequestGateMiddleware
from fleet_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from fleet_backend.app.core.policy import get_policy_table
from fleet_backend.app.core.redis_client import ping_redis
from fleet_backend.app.db.session import engine, Base, AsyncSessionLocal
from fleet_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleet_backend.app.models.user import User
from fleet_backend.app.models.audit_log import AuditLog
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.vehicle_assignment import VehicleAssignment
from fleet_backend.app.models.maintenance_record import MaintenanceRecord

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Role-based access control for fleet management",
    lifespan=lifespan,
)

# Gate inputs, loaded once at process start. The policy table validates
# itself here, so a malformed role mapping stops the process.
app.state.identity_resolver = IdentityResolver(AsyncSessionLocal)
app.state.policy_table = get_policy_table()
app.state.route_config = RouteConfig.from_settings(settings)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Last added runs first: observability wraps the gate
app.add_middleware(RequestGateMiddleware)
app.add_middleware(ObservabilityMiddleware)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and revocation store reachability
    """
    return {
        "status": "healthy",
        "redis": "ok" if await ping_redis() else "unavailable",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")
