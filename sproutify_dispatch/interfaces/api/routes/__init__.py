from fastapi import FastAPI

from .dispatch import router as dispatch_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(dispatch_router)
