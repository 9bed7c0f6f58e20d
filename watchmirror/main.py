"""Main FastAPI application for watchmirror."""

import asyncio
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from watchmirror.config import Settings
from watchmirror.database.connection import Database
from watchmirror.database.store import SqlDocumentStore
from watchmirror.core.projector import ChangeProjector
from watchmirror.ingress.handler import AckPolicy, IngressHandler
from watchmirror.ingress.consumer import AmqpConsumer
from watchmirror.services.query_service import QueryService
from watchmirror.state import AppServices
from watchmirror.api.routes import health, nodes


def configure_logging(settings: Settings) -> None:
    """Route all logging through a single loguru sink."""
    logger.remove()
    if settings.dev:
        logger.add(
            sys.stderr,
            level=settings.log_level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        )
    else:
        logger.add(sys.stdout, level=settings.log_level, serialize=True)

    if settings.verbose:
        logger.debug("Set logging to verbose")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application for the given settings."""
    settings = settings or Settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting watchmirror...")

        # Initialize database
        logger.info("Initializing database...")
        database = Database(settings.database_url, echo=settings.verbose)
        await database.init()
        store = SqlDocumentStore(database)

        # Wire projection and ingress
        projector = ChangeProjector(store, delete_any_type=settings.delete_any_type)
        handler = IngressHandler(
            projector, AckPolicy.from_settings(settings), verbose=settings.verbose
        )

        consumer = None
        if settings.consumer_enabled:
            consumer = AmqpConsumer(
                settings, handler, event_loop=asyncio.get_running_loop()
            )
            await consumer.start()
        else:
            logger.warning("AMQP consumer disabled, the mirror will not be updated")

        app.state.services = AppServices(
            settings=settings,
            database=database,
            store=store,
            query_service=QueryService(store),
            consumer=consumer,
        )
        logger.info("Services initialized")

        yield

        # Shutdown
        logger.info("Shutting down watchmirror...")

        if consumer:
            await consumer.stop()

        await database.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["Origin", "Content-Type"],
        expose_headers=["X-Total-Count"],
        max_age=1728000,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Access log for every request."""
        start_time = time.monotonic()
        response = await call_next(request)
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"{(time.monotonic() - start_time) * 1000:.1f}ms"
        )
        return response

    # Include routers
    app.include_router(nodes.router)
    app.include_router(health.router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "status": "running",
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
    )
