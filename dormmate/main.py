"""Main application entry point with lifespan orchestration."""

import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from loguru import logger

from dormmate.api.v1.router import router as api_v1_router
from dormmate.config import APP_VERSION, config
from dormmate.events.bus import get_event_bus, reset_event_bus
from dormmate.events.handlers import HealthHandler
from dormmate.services.health_service import health_checker
from dormmate.store import get_store, reset_store


def setup_logging() -> None:
    """Configure loguru sinks from config.logging."""
    log_level = config.logging.level
    logger.remove()

    if config.logging.json_format:
        logger.add(
            sys.stdout,
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            serialize=True,
        )
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}:{function}:{line}</cyan> | <level>{message}</level>",
        )

    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            level=log_level,
            rotation=config.logging.rotation,
            retention=config.logging.retention,
            compression="zip",
            serialize=config.logging.json_format,
        )

    logger.info(f"Logging configured at {log_level} level")


async def startup() -> None:
    """Initialize application components."""
    setup_logging()
    logger.info("Starting DormMate announcements...")

    event_bus = get_event_bus()
    await event_bus.start()
    await HealthHandler(health_checker).initialize(event_bus)

    get_store()
    logger.info("Application started successfully")


async def shutdown() -> None:
    """Gracefully shutdown application."""
    logger.info("Shutting down application...")

    try:
        await reset_store()
        await reset_event_bus()
        logger.info("Application shutdown complete")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager.

    Args:
        app: FastAPI instance

    Yields:
        None
    """
    await startup()

    yield

    await shutdown()


app = FastAPI(
    title="dormmate",
    description="Building-scoped announcements for dorm residents and staff",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.include_router(api_v1_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dormmate.main:app",
        host=config.api.host,
        port=config.api.port,
        log_config=None,
        access_log=False,
    )
