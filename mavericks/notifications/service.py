import logging
from datetime import datetime
from typing import List, Optional

from mavericks.core.errors import NotFoundError, PermissionDeniedError
from mavericks.notifications.manager import NotificationHub
from mavericks.notifications.models import Notification, NotificationType
from mavericks.store.document_store import DocumentStore

logger = logging.getLogger(__name__)

NOTIFICATIONS = "notifications"
MAX_NOTIFICATIONS = 5


async def create_notification(
    store: DocumentStore,
    user_id: str,
    message: str,
    type: NotificationType,
    hub: Optional[NotificationHub] = None,
    limit: int = MAX_NOTIFICATIONS,
) -> Notification:
    """
    Add an unread notification and trim the user's oldest ones so at most
    `limit` remain. Pushed to live sockets after the write commits.
    """
    # Transactions take no queries, so the trim list is read up front
    existing = await store.query(NOTIFICATIONS, {"user_id": user_id}, order_by=[("created_at", "asc")])

    doc = {
        "user_id": user_id,
        "message": message,
        "type": NotificationType(type).value,
        "is_read": False,
        "created_at": datetime.utcnow(),
    }

    async def write(txn):
        key = await txn.add(NOTIFICATIONS, doc)
        if len(existing) >= limit:
            for old in existing[:len(existing) - limit + 1]:
                await txn.delete(NOTIFICATIONS, old["id"])
        return key

    key = await store.run_transaction(write)
    notification = Notification(id=key, **doc)

    if hub is not None:
        await hub.push(user_id, {"type": "notification", "notification": notification.model_dump(mode="json")})
    return notification


async def get_user_notifications(store: DocumentStore, user_id: str, limit: int = 20) -> List[Notification]:
    docs = await store.query(NOTIFICATIONS, {"user_id": user_id}, order_by=[("created_at", "desc")], limit=limit)
    return [Notification.model_validate(doc) for doc in docs]


async def get_unread_notifications(store: DocumentStore, user_id: str) -> List[Notification]:
    docs = await store.query(
        NOTIFICATIONS, {"user_id": user_id, "is_read": False}, order_by=[("created_at", "desc")]
    )
    return [Notification.model_validate(doc) for doc in docs]


async def mark_as_read(store: DocumentStore, notification_id: str, user_id: str) -> None:
    doc = await store.get(NOTIFICATIONS, notification_id)
    if doc is None:
        raise NotFoundError("Notification not found")
    if doc["user_id"] != user_id:
        raise PermissionDeniedError("Not your notification")
    await store.update(NOTIFICATIONS, notification_id, {"is_read": True})


async def mark_all_as_read(store: DocumentStore, user_id: str) -> int:
    return await store.update_many(NOTIFICATIONS, {"user_id": user_id, "is_read": False}, {"is_read": True})
