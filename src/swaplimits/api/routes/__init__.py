"""HTTP routes."""

from swaplimits.api.routes.health import router as health_router
from swaplimits.api.routes.limits import router as limits_router

__all__ = ["health_router", "limits_router"]
