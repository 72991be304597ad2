import logging
from datetime import datetime
from typing import List, Optional

from mavericks.core.auth import CurrentUser
from mavericks.core.config import XP_VALUES
from mavericks.core.errors import NotFoundError
from mavericks.missions.models import MissionProgress, MissionProgressUpdate, ProgressResult
from mavericks.notifications.manager import NotificationHub
from mavericks.notifications.models import NotificationType
from mavericks.notifications.service import create_notification
from mavericks.store.document_store import DocumentStore
from mavericks.users.xp import apply_xp

logger = logging.getLogger(__name__)

USERS = "users"


async def ensure_profile(store: DocumentStore, user: CurrentUser) -> dict:
    """Get the user's profile, creating it on first sight"""
    profile = await store.get(USERS, user.uid)
    if profile is not None:
        return profile

    profile = {
        "email": user.email,
        "name": user.name or (user.email.split("@")[0] if user.email else "Maverick"),
        "avatar": user.avatar or "",
        "skills": [],
        "activity": [],
        "needs_onboarding": True,
        "questions_solved": 0,
        "claimed_badges": [],
        "completed_mission_dates": [],
        "xp": 0,
        "level": 1,
        "created_at": datetime.utcnow(),
        "last_updated": datetime.utcnow(),
    }
    await store.set(USERS, user.uid, profile)
    logger.info("Created profile for %s", user.uid)
    return {**profile, "id": user.uid}


async def _notify_level_up(store, user_id: str, old_level: int, new_level: int,
                           hub: Optional[NotificationHub]):
    if new_level > old_level:
        await create_notification(
            store, user_id, f"Level up! You reached level {new_level}.",
            NotificationType.SYSTEM_UPDATE, hub=hub
        )


async def save_mission_progress(store: DocumentStore, user_id: str, date: str,
                                update: MissionProgressUpdate,
                                hub: Optional[NotificationHub] = None) -> ProgressResult:
    """
    Record today's mission progress. Completed dates are kept on the profile
    so each date awards XP at most once, whatever was saved in between.
    """
    async def write(txn):
        profile = await txn.get(USERS, user_id)
        if profile is None:
            raise NotFoundError("User profile not found")

        completed_dates = list(profile.get("completed_mission_dates") or [])
        already_completed = date in completed_dates

        progress = MissionProgress(
            date=date,
            language=update.language,
            code=update.code,
            completed=update.completed or already_completed,
        )
        fields = {"daily_mission_progress": progress.model_dump(), "last_updated": datetime.utcnow()}

        xp_awarded = 0
        if update.completed and not already_completed:
            xp_awarded = XP_VALUES["DAILY_MISSION"]
            fields.update(apply_xp(profile, xp_awarded))
            fields["completed_mission_dates"] = completed_dates + [date]
            fields["activity"] = list(profile.get("activity") or []) + [{
                "type": "daily_mission",
                "language": update.language,
                "date": datetime.utcnow().isoformat(),
            }]
            fields["questions_solved"] = (profile.get("questions_solved") or 0) + 1

        await txn.update(USERS, user_id, fields)
        old_level = profile.get("level") or 1
        return progress, xp_awarded, fields.get("xp", profile.get("xp") or 0), fields.get("level", old_level), old_level

    progress, xp_awarded, xp, level, old_level = await store.run_transaction(write)
    if xp_awarded:
        logger.info("Awarded %d XP to %s for mission %s", xp_awarded, user_id, date)
        await _notify_level_up(store, user_id, old_level, level, hub)
    return ProgressResult(progress=progress, xp_awarded=xp_awarded, xp=xp, level=level)


async def leaderboard(store: DocumentStore, limit: int = 50) -> List[dict]:
    users = await store.query(USERS, order_by=[("xp", "desc")], limit=limit)
    return [
        {
            "rank": rank,
            "user_id": user["id"],
            "name": user.get("name") or "Anonymous",
            "avatar": user.get("avatar") or "",
            "xp": user.get("xp") or 0,
            "level": user.get("level") or 1,
            "questions_solved": user.get("questions_solved") or 0,
        }
        for rank, user in enumerate(users, start=1)
    ]
