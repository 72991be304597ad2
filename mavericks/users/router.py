from fastapi import APIRouter, Depends, Query

from mavericks.core.auth import CurrentUser, get_current_user
from mavericks.core.dependencies import get_store
from mavericks.store.document_store import DocumentStore
from mavericks.users.service import ensure_profile, leaderboard
from mavericks.users.xp import calculate_level

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
async def get_me(
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    profile = await ensure_profile(store, user)
    xp = profile.get("xp") or 0
    return {
        "profile": profile,
        "is_admin": user.is_admin,
        "level": calculate_level(xp),
    }


@router.get("/leaderboard")
async def get_leaderboard(
    limit: int = Query(50, ge=1, le=200),
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    entries = await leaderboard(store, limit)
    return {"entries": entries, "count": len(entries)}
