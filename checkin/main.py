"""
Employee Check-In — Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `services/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from checkin.api.v1.api import api_router
from checkin.core.config import settings
from checkin.core.exceptions import register_exception_handlers
from checkin.db.base import Base
from checkin.db.seed import seed_reference_data
from checkin.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from checkin.models.attendance import AttendanceRecord  # noqa: F401
from checkin.models.department import Department  # noqa: F401
from checkin.models.employee import Employee  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    if settings.SEED_SAMPLE_DATA:
        async with async_session_factory() as session:
            await seed_reference_data(session)

    logger.info(
        "Check-in service v%s started (window %s-%s %s, geofence %s)",
        settings.VERSION,
        settings.PUNCH_IN_START,
        settings.PUNCH_IN_END,
        settings.TIMEZONE_LABEL,
        f"{settings.GEOFENCE_RADIUS_METERS:g}m" if settings.GEOFENCE_ENABLED else "off",
    )
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Employee attendance check-in with time window and geofence gating",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
