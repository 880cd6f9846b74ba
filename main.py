from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from event_finder.config import Settings, get_settings
from event_finder.infrastructure.logging_config import configure_logging
from event_finder.infrastructure.scheduler import create_job_scheduler
from event_finder.interfaces.api.routes import register_routes
from event_finder.services import Services, build_services

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, *, services: Services | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Serve it with ``uvicorn main:create_app --factory``.
    """

    if settings is None:
        settings = services.settings if services is not None else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the periodic jobs and flush pending emails on shutdown."""

        app_services: Services = app.state.services
        job_scheduler = None
        if settings.scheduler_enabled:
            job_scheduler = create_job_scheduler(
                reminder_sweep=app_services.run_reminder_sweep,
                retention_purge=app_services.run_retention_purge,
                sweep_interval_minutes=settings.reminder_sweep_interval_minutes,
            )
            job_scheduler.start()
        try:
            yield
        finally:
            if job_scheduler is not None:
                job_scheduler.shutdown(wait=False)
            await app_services.dispatcher.drain()
            app_services.close()
            logger.info("Notification service stopped")

    configure_logging(settings.log_level, json_output=settings.log_json)
    app = FastAPI(title="Event Finder Notifications", lifespan=lifespan)
    app.state.services = services or build_services(settings)

    # The web client links back to site_url and opens the websocket from there.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.site_url.rstrip("/")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app
