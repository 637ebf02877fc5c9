"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (stores, data
source, telemetry).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import get_settings
from app.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


async def _create_stores(app: FastAPI) -> None:
    """Set app.state.kv_store / property_store: Redis when reachable, else in-memory."""
    settings = get_settings()
    from app.infrastructure.cache.memory import InMemoryKeyValueStore, InMemoryPropertyStore

    app.state.redis_connection = None
    if settings.redis_enabled:
        from app.infrastructure.cache.redis_cache import (
            RedisConnection,
            RedisKeyValueStore,
            RedisPropertyStore,
        )

        connection = RedisConnection()
        await connection.connect()
        if connection.is_available():
            app.state.redis_connection = connection
            app.state.kv_store = RedisKeyValueStore(connection)
            app.state.property_store = RedisPropertyStore(connection)
            return
        logger.warning("Redis unavailable at startup; using in-memory stores")
    app.state.kv_store = InMemoryKeyValueStore()
    app.state.property_store = InMemoryPropertyStore()


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: telemetry (if enabled), stores, data source.
    Shutdown order: Redis disconnect, telemetry shutdown.
    Stores or a data source already placed on app.state (tests) are kept.
    """
    settings = get_settings()

    # ---- Startup ----
    if settings.telemetry_enabled:
        from app.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

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
        if settings.redis_enabled:
            telemetry.instrument_redis()
        logger.info("Telemetry initialized")

    if getattr(app.state, "kv_store", None) is None or getattr(app.state, "property_store", None) is None:
        await _create_stores(app)

    if getattr(app.state, "data_source", None) is None:
        from app.infrastructure.datasource.factory import DataSourceFactory
        from app.infrastructure.datasource.memory_source import InMemoryTableSource

        try:
            app.state.data_source = DataSourceFactory.create_data_source(settings)
        except ConfigurationError as e:
            logger.warning("%s; using empty in-memory data source", e.message)
            app.state.data_source = InMemoryTableSource()
    logger.info(
        "Stores ready: kv=%s, properties=%s, data source=%s",
        type(app.state.kv_store).__name__,
        type(app.state.property_store).__name__,
        type(app.state.data_source).__name__,
    )

    yield

    # ---- Shutdown ----
    connection = getattr(app.state, "redis_connection", None)
    if connection is not None:
        await connection.disconnect()
        app.state.redis_connection = None
        logger.info("Redis disconnected")

    from app.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
