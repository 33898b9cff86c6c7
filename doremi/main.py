import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load env from the package directory before settings are read
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from doremi.core.config import settings, validate_config
from doremi.core.logging import configure_logging
from doremi.core.middleware.request_id import RequestIdMiddleware
from doremi.core.middleware.metrics import MetricsMiddleware
from doremi.core.validation import validate_env
from doremi.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from doremi.api import admin, content, health, library, metrics, notifications, revenue
from doremi.services import PublishingServices, build_services

configure_logging(settings.ENV, settings.LOG_LEVEL)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("doremi")
    logger.info(f"Starting Doremi publishing service (store={type(app.state.services.store).__name__})...")
    try:
        yield
    finally:
        logging.getLogger("doremi").info("Stopping Doremi publishing service...")


def create_app(services: Optional[PublishingServices] = None) -> FastAPI:
    """Build the app around `services` (the configured store's services by default)."""
    app = FastAPI(title="Doremi - Publishing", lifespan=lifespan)
    app.state.services = services or build_services()

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(content.router)
    app.include_router(library.router)
    app.include_router(notifications.router)
    app.include_router(revenue.router)
    app.include_router(admin.router)
    app.include_router(health.root_router)
    app.include_router(metrics.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("doremi.main:app", host="0.0.0.0", port=8000)
