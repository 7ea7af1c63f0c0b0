"""Application lifespan: startup and shutdown.

Only wiring lives here: logging, telemetry and the storage backend. The
storage backend is built at startup unless one was injected into create_app;
a backend that fails to build is logged and left for the readiness check to
report.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from sharebox.core.config import Settings, get_settings
from sharebox.infrastructure.external.storage import StorageFactory
from sharebox.shared.telemetry.logging import setup_logging
from sharebox.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, telemetry (if enabled), storage.
    Shutdown order: storage close, telemetry shutdown.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    # ---- Startup ----
    setup_logging(settings)

    if settings.telemetry_enabled:
        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        logger.info("Telemetry initialized")

    if getattr(app.state, "storage", None) is None:
        try:
            app.state.storage = StorageFactory.create_storage(settings)
            logger.info("Storage backend ready: %s", settings.storage_backend)
        except Exception as e:
            logger.exception("Storage backend could not be created: %s", e)

    yield

    # ---- Shutdown ----
    storage = getattr(app.state, "storage", None)
    if storage is not None:
        await storage.close()
        logger.info("Storage closed")

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
