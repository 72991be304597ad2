import logging
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import credentials
from motor.motor_asyncio import AsyncIOMotorClient

from mavericks.ai.gemini_core import GeminiProvider
from mavericks.core.config import Config
from mavericks.store.document_store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """One handle to every backing service, built once per process"""
    config: Config
    store: DocumentStore
    provider: GeminiProvider
    mongo_client: Optional[AsyncIOMotorClient] = None

    def close(self) -> None:
        if self.mongo_client is not None:
            self.mongo_client.close()
            logger.info("Mongo client closed")


def init_firebase(config: Config) -> None:
    """Initialize the Firebase Admin SDK, once"""
    if firebase_admin._apps:
        return
    cred = credentials.Certificate({
        "type": "service_account",
        "project_id": config.FIREBASE_PROJECT_ID,
        "private_key": config.FIREBASE_PRIVATE_KEY,
        "client_email": config.FIREBASE_CLIENT_EMAIL,
        "token_uri": "https://oauth2.googleapis.com/token",
    })
    firebase_admin.initialize_app(cred)
    logger.info("Firebase Admin SDK initialized for %s", config.FIREBASE_PROJECT_ID)


def init_services(config: Config) -> Services:
    try:
        init_firebase(config)
    except Exception as e:
        raise RuntimeError(f"FATAL: Firebase initialization failed: {e}") from e

    mongo_client = AsyncIOMotorClient(config.MONGO_URL)
    store = DocumentStore(mongo_client[config.MONGO_DB_NAME], client=mongo_client)
    provider = GeminiProvider(config.GEMINI_API_KEYS, model_name=config.GEMINI_MODEL)

    logger.info(
        "Services ready: db=%s model=%s keys=%d",
        config.MONGO_DB_NAME, config.GEMINI_MODEL, len(config.GEMINI_API_KEYS)
    )
    return Services(config=config, store=store, provider=provider, mongo_client=mongo_client)
