"""
Main entry point for the FastAPI application.
Configures lifespan events and mounts routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import router as api_router
from src.config.settings import Settings, settings
from src.services.gateway import SyncGateway
from src.services.websocket import ConnectionManager

# Setup Logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# pylint: disable=redefined-outer-name
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application Lifecycle Manager.
    On shutdown closes every socket and cancels pending typing timers.
    """
    logger.info("Starting %s...", app.title)

    yield

    logger.info("Shutting down %s...", app.title)
    await app.state.connection_manager.shutdown()
    await app.state.gateway.shutdown()


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Factory to create the app with its own, isolated services."""
    app_settings = app_settings or settings

    application = FastAPI(
        title=app_settings.app_name,
        description="Realtime chat synchronization API",
        version="0.1.0",
        lifespan=lifespan,
    )

    gateway = SyncGateway.from_settings(app_settings)
    application.state.settings = app_settings
    application.state.gateway = gateway
    application.state.connection_manager = ConnectionManager(gateway)

    # Middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    application.include_router(api_router, prefix="/api")

    return application


app = create_app()


def main() -> None:
    """Runs the node with uvicorn."""
    uvicorn.run(app, host=settings.server_host, port=settings.server_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
