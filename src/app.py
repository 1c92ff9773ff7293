"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from src.api.routers import api_router, form_router
from src.config.settings import Settings, get_settings
from src.infrastructure.logging.logger import setup_logging

settings = get_settings()

setup_logging(
    level=settings.log_level,
    json_output=not settings.debug,
    silence_noisy_loggers=True,
)

logger = logging.getLogger(__name__)


def _validate_startup_config(settings: Settings) -> None:
    """Validate required configuration at startup."""
    if not settings.recaptcha_secret:
        logger.warning("recaptcha_secret is empty; every verification will be rejected")
    if not settings.recaptcha_site_key:
        logger.warning("recaptcha_site_key is empty; the sample form will not render a widget")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown lifecycle."""
    logger.info("Starting %s", settings.app_name)
    _validate_startup_config(settings)

    app.state.http_client = httpx.AsyncClient(timeout=settings.recaptcha_timeout)
    yield
    logger.info("Shutting down %s", settings.app_name)
    try:
        await app.state.http_client.aclose()
        logger.info("Shared HTTP client closed")
    except Exception as e:
        logger.error("Error closing shared HTTP client: %s", e, exc_info=True)


app = FastAPI(
    title=settings.app_name,
    description="Server-side verification of reCAPTCHA challenge tokens",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(form_router)
app.include_router(api_router, prefix="/api")
