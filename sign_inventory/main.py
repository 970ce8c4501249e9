import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sign_inventory.core.config import Config, config
from sign_inventory.core.container import ServiceContainer
from sign_inventory.core.error_handler import global_exception_handler
from sign_inventory.core.exceptions import StorageUnavailable
from sign_inventory.modules.catalog.router import router as catalog_router
from sign_inventory.modules.connectivity.router import router as connectivity_router
from sign_inventory.modules.drafts.router import router as drafts_router
from sign_inventory.modules.inventory.router import router as inventory_router
from sign_inventory.modules.notifications.router import router as notifications_router
from sign_inventory.modules.sync_queue.router import router as sync_router
from sign_inventory.modules.system.router import router as system_router

# Configure logging to output to console
logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Config] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the application around one service container.

    Args:
        settings: Configuration (default: read from environment)
        container: Prebuilt services (tests inject fakes here)
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = container or ServiceContainer.build(settings)
        app.state.container = services
        try:
            await services.store.open()
        except StorageUnavailable as exc:
            # Online browsing still works; /system/health reports the failure
            logger.error("Offline storage unavailable at startup: %s", exc.detail)
        services.connectivity.register_background_sync()
        logger.info("🚀 Sign inventory core ready")
        try:
            yield
        finally:
            await services.close()

    app = FastAPI(
        title="Sign Inventory Offline Core",
        description="Offline-first storage and sync for the sign inventory checklist",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(Exception, global_exception_handler)

    # The checklist PWA is served from the same device
    origins = [
        "http://localhost",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers with /api prefix
    app.include_router(catalog_router, prefix="/api")
    app.include_router(drafts_router, prefix="/api")
    app.include_router(inventory_router, prefix="/api")
    app.include_router(sync_router, prefix="/api")
    app.include_router(connectivity_router, prefix="/api")
    app.include_router(notifications_router, prefix="/api")
    app.include_router(system_router, prefix="/api")

    return app


app = create_app()
