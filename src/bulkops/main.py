from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.bulkops.api.middlewares import setup_middlewares
from src.bulkops.clients.http import close_http_client
from src.bulkops.core.config import get_settings
from src.bulkops.core.db import dispose_engine
from src.bulkops.core.exceptions import setup_exception_handlers
from src.bulkops.core.executor import background_executor
from src.bulkops.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}")

    yield

    # Let running stages finish so their operations are not left half-written
    grace_period = settings.shutdown_grace_period
    logger.info(
        f"Shutdown initiated, waiting for {background_executor.in_flight_count} running stages..."
    )
    drained = await background_executor.drain(timeout=grace_period)
    if not drained:
        logger.warning(
            f"Shutdown timeout after {grace_period}s - "
            f"{background_executor.in_flight_count} stages may not have completed"
        )

    logger.info("Closing connections...")
    await close_http_client()
    await dispose_engine()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Bulk edit operations orchestrator",
        version="0.1.0",
        lifespan=lifespan,
    )

    setup_exception_handlers(app)
    setup_middlewares(app)

    return app


app = create_app()
