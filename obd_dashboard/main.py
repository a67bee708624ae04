"""Main FastAPI application for the OBD diagnostic dashboard API.

Serves project, vehicle and fault-code CRUD, telemetry analytics, report
generation and user administration under ``/v1``.
"""

from typing import Dict

import structlog
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from obd_dashboard.api.v1.endpoints import (
    admin,
    analytics,
    auth,
    dashboard,
    fault_codes,
    projects,
    reports,
    users,
    vehicles,
)
from obd_dashboard.api.v1.schemas import HealthResponse
from obd_dashboard.cache import query_cache
from obd_dashboard.config import settings
from obd_dashboard.db import session as db_session
from obd_dashboard.logging_config import configure_logging
from obd_dashboard.models_db import _utcnow

configure_logging(settings.log_level, settings.log_format)
logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="OBD-II Diagnostic Dashboard API",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event() -> None:
    """Start the query-cache sweep and log the effective configuration."""
    logger.info(
        "app_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        database=db_session.engine.url.render_as_string(hide_password=True),
        query_cache_ttl_seconds=settings.query_cache_ttl_seconds,
    )
    await query_cache.start_cleanup_loop()


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await query_cache.stop_cleanup_loop()
    logger.info("app_stopped", app_name=settings.app_name)


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """Root endpoint.

    Returns:
        Welcome message with API information
    """
    return {
        "message": "OBD-II Diagnostic Dashboard API",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    status_code=status.HTTP_200_OK,
)
def health_check() -> HealthResponse:
    """Report API health with a live ``SELECT 1`` database probe."""
    services_status = {"api": "healthy", "database": "healthy"}
    try:
        with db_session.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("health_database_unreachable", error=str(exc))
        services_status["database"] = "unreachable"

    all_healthy = all(value == "healthy" for value in services_status.values())
    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=_utcnow(),
        version=settings.app_version,
        services=services_status,
    )


# Include routers
app.include_router(auth.router, prefix="/v1/auth", tags=["Auth"])
app.include_router(users.router, prefix="/v1/users", tags=["Users"])
app.include_router(projects.router, prefix="/v1/projects", tags=["Projects"])
app.include_router(vehicles.router, prefix="/v1/vehicles", tags=["Vehicles"])
app.include_router(fault_codes.router, prefix="/v1/fault-codes", tags=["Fault Codes"])
app.include_router(analytics.router, prefix="/v1/analytics", tags=["Analytics"])
# /v1 owns: dashboard → /dashboard/stats, /data
app.include_router(dashboard.router, prefix="/v1", tags=["Dashboard"])
app.include_router(reports.router, prefix="/v1/reports", tags=["Reports"])
app.include_router(admin.router, prefix="/v1/admin", tags=["Admin"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
    )
