"""Health check endpoints."""

from fastapi import APIRouter, Request

from swaplimits import __version__
from swaplimits.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "swaplimits"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Health check with limit engine state.

    Reports "degraded" while the latest pass failed or nothing is published yet.
    """
    controller = request.app.state.controller
    provider = controller.engine.resolver.quota_provider
    error = controller.last_error
    published = controller.limits is not None

    return {
        "status": "healthy" if published and error is None else "degraded",
        "service": "swaplimits",
        "version": __version__,
        "limits": {
            "published": published,
            "passes_triggered": controller.trigger,
            "last_error": f"{type(error).__name__}: {error}" if error else None,
        },
        "quota_provider": provider.name,
        "config": get_settings().get_safe_dict(),
    }
