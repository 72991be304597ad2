import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from pymongo.errors import PyMongoError

from mavericks.core.auth import CurrentUser, require_admin
from mavericks.core.dependencies import get_services
from mavericks.core.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health")
async def health(services: Services = Depends(get_services)):
    """Liveness plus a ping of the document store"""
    record = {"timestamp": datetime.utcnow(), "status": {"api": "UP"}}
    try:
        await services.store.db.command("ping")
        record["status"]["document_store"] = "UP"
    except PyMongoError as e:
        logger.warning("Document store ping failed: %s", e)
        record["status"]["document_store"] = "DOWN"
    return record


@router.get("/health/ai-usage")
async def ai_usage(
    services: Services = Depends(get_services),
    admin: CurrentUser = Depends(require_admin),
):
    """Admin: per-key Gemini request and token counters"""
    return {"model": services.provider.model_name, "keys": services.provider.usage()}
