"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import get_settings
from app.core.exceptions import register_exception_handlers

settings = get_settings()


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(level)


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    Path(settings.UPLOAD_DIR, "logos").mkdir(parents=True, exist_ok=True)

    if settings.WEEKLY_DIGEST_ENABLED:
        from app.services.notifications.scheduler import start_scheduler
        start_scheduler()

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")

    yield

    # Shutdown
    from app.services.notifications.scheduler import stop_scheduler
    stop_scheduler()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        description="Review collection funnel that routes happy customers to public reviews",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.DEBUG else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Uploaded logos
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    # Register API routers
    from app.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    # Register public funnel pages
    from app.api.pages import pages_router
    from app.api.v1.seo import public_router

    app.include_router(pages_router)
    app.include_router(public_router)

    return app


# Create the application instance
app = create_app()
