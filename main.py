"""
FeederSync FastAPI Application
Main entry point: wiring of store, device transport, routes and middleware
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import uvicorn
from contextlib import asynccontextmanager
import anyio
import anyio.to_thread
from typing import Optional

from sqlalchemy.engine import Engine

from api.routes import devices, feeders, health
from adapters import DeviceTransport, HttpDeviceTransport
from domain.models import create_db_engine, create_session_factory, init_database
from services import CommandService
from app.config import settings
from api.middleware import (
    RequestLoggingMiddleware,
    validation_exception_handler,
    http_exception_handler,
    feedersync_exception_handler,
    general_exception_handler,
)
from app.exceptions import FeederSyncError

# Setup logging with configured level and format
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()), format=settings.log_format
)
_logger = logging.getLogger("feedersync.main")


async def _wait_for_database(engine: Engine) -> None:
    """Create the schema, retrying while the store comes up"""
    for attempt in range(1, settings.db_init_attempts + 1):
        try:
            # Run blocking init in a thread to avoid blocking the event loop
            await anyio.to_thread.run_sync(init_database, engine)
            _logger.info("Database initialization succeeded")
            return
        except Exception as exc:
            _logger.warning(
                "Database init attempt %d/%d failed: %s",
                attempt,
                settings.db_init_attempts,
                exc,
            )
            if attempt < settings.db_init_attempts:
                await anyio.sleep(settings.db_init_delay_sec)
            else:
                _logger.error(
                    "Database initialization failed after %d attempts", attempt
                )
                raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup and shutdown.

    Builds the engine and transport unless they were injected through
    create_app, checks the store is ready, and tears everything down on exit.
    """
    _logger.info(f"Starting FeederSync in {settings.environment.value} mode")

    state = app.state
    owns_engine = state.engine is None
    if owns_engine:
        state.engine = create_db_engine(settings.database_url, echo=settings.db_echo)
    await _wait_for_database(state.engine)
    state.session_factory = create_session_factory(state.engine)

    if state.transport is None:
        state.transport = HttpDeviceTransport(
            port=settings.device_port,
            path=settings.device_command_path,
            timeout_sec=settings.device_command_timeout_sec,
        )
    state.transport.open()
    state.command_service = CommandService(
        state.transport,
        timeout_sec=settings.device_command_timeout_sec,
        max_workers=settings.dispatcher_max_workers,
    )

    try:
        yield
    finally:
        _logger.info("Shutting down FeederSync")
        state.command_service.shutdown()
        try:
            state.transport.close()
        except Exception as e:
            _logger.exception("Error closing device transport during shutdown: %s", e)
        if owns_engine:
            state.engine.dispose()
            state.engine = None


def create_app(
    engine: Optional[Engine] = None, transport: Optional[DeviceTransport] = None
) -> FastAPI:
    """Build the application; engine and transport may be injected (tests)"""
    app = FastAPI(
        title=settings.api_title,
        version=settings.app_version,
        description=settings.api_description,
        lifespan=lifespan,
        debug=settings.debug,
        openapi_url=(
            f"{settings.api_prefix}/openapi.json" if not settings.is_production() else None
        ),
        docs_url=f"{settings.api_prefix}/docs" if not settings.is_production() else None,
        redoc_url=f"{settings.api_prefix}/redoc" if not settings.is_production() else None,
    )
    app.state.engine = engine
    app.state.transport = transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(FeederSyncError, feedersync_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(feeders.router, prefix=settings.api_prefix)
    app.include_router(devices.router, prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )
