from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    ADMIN_REQUEST = "admin_request"
    BADGE_UNLOCKED = "badge_unlocked"
    SYSTEM_UPDATE = "system_update"


class Notification(BaseModel):
    id: str
    user_id: str
    message: str
    type: NotificationType
    is_read: bool = False
    created_at: datetime


class NotificationCreate(BaseModel):
    user_id: str
    message: str = Field(..., min_length=1, max_length=500)
    type: NotificationType = NotificationType.SYSTEM_UPDATE
