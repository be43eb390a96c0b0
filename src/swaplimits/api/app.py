"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from swaplimits import __version__
from swaplimits.config import get_settings
from swaplimits.history.stores import BtcTransactionStore, NimTransactionStore
from swaplimits.history.swaps import SwapIndex
from swaplimits.limits.controller import SwapLimitsController
from swaplimits.limits.engine import SwapLimitsEngine
from swaplimits.quotas.factory import create_quota_provider


def create_default_controller() -> SwapLimitsController:
    """Controller over empty local stores and the configured quota provider."""
    settings = get_settings()
    engine = SwapLimitsEngine(
        quota_provider=create_quota_provider(),
        nim_store=NimTransactionStore(),
        btc_store=BtcTransactionStore(),
        swap_index=SwapIndex(),
        settings=settings,
    )
    return SwapLimitsController(engine)


def create_app(controller: Optional[SwapLimitsController] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    controller = controller or create_default_controller()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        yield
        # Shutdown
        await controller.wait_idle()

    app = FastAPI(
        title="SwapLimits API",
        description="Swap limits of the active wallet account",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.controller = controller

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from swaplimits.api.routes import health_router, limits_router

    app.include_router(health_router, tags=["Health"])
    app.include_router(limits_router, prefix="/api/v1", tags=["Limits"])

    return app
