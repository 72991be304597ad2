"""
Mavericks Platform API
Daily missions, discussions, notifications and XP for the coding platform
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mavericks.core.config import Config
from mavericks.core.errors import register_error_handlers
from mavericks.core.services import Services, init_services
from mavericks.discussions.router import router as discussions_router
from mavericks.missions.router import router as missions_router
from mavericks.missions.service import MissionCacheResolver
from mavericks.notifications.manager import NotificationHub
from mavericks.notifications.router import router as notifications_router
from mavericks.store.document_store import create_indexes
from mavericks.system.health_router import router as health_router
from mavericks.users.router import router as users_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def attach_services(app: FastAPI, services: Services) -> None:
    """Hang the service handle and the per-process helpers on app.state"""
    app.state.services = services
    app.state.hub = NotificationHub()
    app.state.resolver = MissionCacheResolver(
        services.store,
        services.provider,
        enrichment=services.config.MISSION_ENRICHMENT,
    )


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the API. Pass `services` to skip environment-driven startup
    (tests hand in their own handle).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        if owned:
            config = Config()
            configure_logging(config.LOG_LEVEL)
            attach_services(app, init_services(config))
            await create_indexes(app.state.services.store)
        else:
            attach_services(app, services)
        logger.info("Mavericks API started")
        yield
        await app.state.resolver.wait_for_enrichment()
        if owned:
            app.state.services.close()
        logger.info("Mavericks API stopped")

    app = FastAPI(title="Mavericks Platform API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # ==================== ROUTER REGISTRATION ====================
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(missions_router)
    app.include_router(discussions_router)
    app.include_router(notifications_router)
    # ============================================================

    return app


app = create_app()
