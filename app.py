"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from roombooking.controllers.admin_controller import router as admin_router
from roombooking.controllers.booking_controller import router as booking_router
from roombooking.controllers.directory_controller import router as directory_router
from roombooking.repository.data_repository import DataRepository
from roombooking.services.approval_service import ApprovalWorkflowService
from roombooking.services.auth_service import AuthService
from roombooking.services.booking_service import BookingService
from roombooking.services.directory_service import RoomRegistryService, UserDirectoryService
from roombooking.services.query_service import BookingQueryService
from roombooking.services.scheduling_service import Clock, SchedulingValidator
from roombooking.utils.config import Settings, get_settings
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every booking service shares one SchedulingValidator so that all writers
    serialize on the same per-room locks.
    """
    settings = settings or get_settings()

    # --- Repository (SQLite connection factory) ---
    repository = DataRepository(settings)
    validator = SchedulingValidator(repository, clock=clock)

    # --- Services ---
    auth_service = AuthService(repository=repository, settings=settings, clock=clock)
    booking_service = BookingService(repository=repository, validator=validator, settings=settings)
    approval_service = ApprovalWorkflowService(
        repository=repository,
        validator=validator,
        settings=settings,
    )
    query_service = BookingQueryService(repository=repository, validator=validator, settings=settings)
    room_service = RoomRegistryService(repository=repository, settings=settings)
    user_service = UserDirectoryService(repository=repository, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(directory_router)
    app.include_router(booking_router)
    app.include_router(admin_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.repository = repository
    app.state.auth_service = auth_service
    app.state.booking_service = booking_service
    app.state.approval_service = approval_service
    app.state.query_service = query_service
    app.state.room_service = room_service
    app.state.user_service = user_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before rooms are seeded or the admin is created.
    """
    repository: DataRepository = app.state.repository
    auth_service: AuthService = app.state.auth_service

    logger.info("Startup: initializing database schema at %s", repository.database_path)
    repository.initialize_database()

    if settings.seed_default_rooms:
        logger.info("Startup: seeding default rooms (skipped if Rooms table not empty)")
        repository.seed_default_rooms()

    logger.info("Startup: ensuring bootstrap admin account")
    auth_service.ensure_bootstrap_admin()

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
