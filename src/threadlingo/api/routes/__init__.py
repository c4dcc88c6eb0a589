"""
Route registration entry point for the FastAPI application.

Keeps the public ``register_routes(app, services)`` API stable while
splitting implementation into focused router modules.
"""

from fastapi import FastAPI

from threadlingo.api.routes import health, translate
from threadlingo.api.services import Services


def register_routes(app: FastAPI, services: Services) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router(services))
    app.include_router(translate.router(services))
