import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from sproutify_dispatch.config import get_settings
from sproutify_dispatch.infrastructure.database import dispose_engine
from sproutify_dispatch.interfaces.api.routes import register_routes
from sproutify_dispatch.utils.logger import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup and release database connections on shutdown."""

    try:
        level = get_settings().log_level
    except ValidationError:
        # Reported as a fatal error on every trigger until the environment is fixed.
        level = logging.INFO
    configure_logging(level)
    yield
    dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the dispatcher's FastAPI application."""

    app = FastAPI(title="Sproutify notification dispatcher", lifespan=lifespan)
    register_routes(app)
    return app


app = create_app()
