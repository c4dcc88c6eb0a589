"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version) and the
``/health`` endpoint (liveness check plus the active model and state
backend).

The version string is read from ``threadlingo.__version__`` which is
resolved at import time via ``importlib.metadata``.
"""

from fastapi import APIRouter

from threadlingo import __version__
from threadlingo.api.services import Services


def router(services: Services) -> APIRouter:
    """Build the health router."""
    api = APIRouter(tags=["health"])

    @api.get("/")
    async def root():
        """Root endpoint showing API identity and current version."""
        return {"message": "Threadlingo API", "version": __version__}

    @api.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "model": services.renderer.model,
            "state_backend": type(services.store).__name__,
            "evals": services.eval_runner.check_names if services.eval_runner else [],
        }

    return api
