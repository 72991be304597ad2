from fastapi import Request

from mavericks.core.services import Services
from mavericks.missions.service import MissionCacheResolver
from mavericks.notifications.manager import NotificationHub
from mavericks.store.document_store import DocumentStore

# ==================== DEPENDENCY FUNCTIONS ====================


def get_services(request: Request) -> Services:
    """Service handle built at startup"""
    return request.app.state.services


def get_store(request: Request) -> DocumentStore:
    return request.app.state.services.store


def get_provider(request: Request):
    return request.app.state.services.provider


def get_resolver(request: Request) -> MissionCacheResolver:
    return request.app.state.resolver


def get_hub(request: Request) -> NotificationHub:
    return request.app.state.hub


def get_mission_timezone(request: Request) -> str:
    return request.app.state.services.config.MISSION_TIMEZONE
