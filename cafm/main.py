"""
CAFM Ticketing - Application Assembly
======================================

Builds the FastAPI application for the facility-management ticketing
service.

Bounded contexts:
- routing: keyword classification, extraction and autocomplete
- tickets: ticket lifecycle, technician roster and auto-assignment

Run locally with ``python -m cafm.main`` or ``uvicorn cafm.main:app``.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from cafm import __version__
from cafm.config import Settings, settings
from cafm.core import ApplicationException
from cafm.infrastructure.database import close_database, create_tables, get_database, init_database
from cafm.routing.application import KeywordRoutingService
from cafm.routing.domain import build_default_taxonomy
from cafm.shared.api.middleware import (
    AccessLogMiddleware,
    CorrelationIDMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from cafm.shared.infrastructure.logging import get_logger, setup_logging
from cafm.tickets.domain import build_assignment_policy
from cafm.tickets.interfaces import technicians_router, tickets_router

logger = get_logger(__name__)

API_DESCRIPTION = """
End users raise maintenance tickets. Each ticket's title and description
are routed by keyword to a service category and the ticket is handed to an
active technician of the responsible role.

| Category | Responsible role |
|----------|------------------|
| Plumbing | Plumber |
| Electrical | Electrician |
| Cleaning | Cleaner |
| AssetManagement, HVAC, Security, IT | AssetManager |
| General (no keyword match) | AssetManager |

Ticket and technician endpoints expect the gateway to forward the caller as
`X-User-Id` and, optionally, `X-User-Role`.
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level, app_settings.environment, app_settings.app_name)

    init_database(app_settings)
    try:
        await create_tables()
    except Exception as e:
        logger.error(
            "Database unavailable at startup",
            extra={"error": str(e), "environment": app_settings.environment}
        )
        if not app_settings.is_development:
            await close_database()
            raise
        # Local runs keep serving suggestions, which need no database

    logger.info("CAFM service started", extra={
        "version": app_settings.app_version,
        "environment": app_settings.environment,
        "assignment_strategy": app_settings.assignment_strategy,
        "categories": len(app.state.routing_service.taxonomy),
    })

    yield

    await close_database()
    logger.info("CAFM service stopped")


system_router = APIRouter(tags=["System"])


@system_router.get("/health")
async def health_check(request: Request):
    """Liveness plus database reachability, for load balancers."""
    try:
        await get_database().ping()
        database = "connected"
    except Exception as e:
        database = f"error: {e}"

    app_settings: Settings = request.app.state.settings
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "version": app_settings.app_version,
        "environment": app_settings.environment,
        "checks": {
            "database": database,
            "routing_taxonomy": f"{len(request.app.state.routing_service.taxonomy)} categories",
            "assignment_strategy": app_settings.assignment_strategy,
        },
    }


@system_router.get("/")
async def root(request: Request):
    """Service summary with the category to role table."""
    taxonomy = request.app.state.routing_service.taxonomy
    return {
        "service": "CAFM Ticketing Service",
        "version": request.app.state.settings.app_version,
        "docs": "/docs",
        "health": "/health",
        "routing": {category.value: profile.role for category, profile in taxonomy},
        "default_role": taxonomy.default_role,
    }


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Assemble the application.

    The routing service and assignment policy are built once here and
    shared by every request through ``app.state``.
    """
    app = FastAPI(
        title="CAFM Ticketing API",
        description=API_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.routing_service = KeywordRoutingService(build_default_taxonomy())
    app.state.assignment_policy = build_assignment_policy(app_settings.assignment_strategy)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it wraps the access log and every line carries the ID
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(system_router)
    app.include_router(tickets_router)
    app.include_router(technicians_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cafm.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
