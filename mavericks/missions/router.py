from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from mavericks.core.auth import CurrentUser, get_current_user
from mavericks.core.dependencies import get_hub, get_mission_timezone, get_provider, get_resolver, get_store
from mavericks.core.config import PROGRAMMING_LANGUAGES
from mavericks.missions.models import (
    CodeExecutionResult,
    MissionCodeRequest,
    MissionProgressUpdate,
    ProgrammingQuestion,
    ProgressResult,
    SolutionEvaluation,
)
from mavericks.missions.service import (
    MissionCacheResolver,
    evaluate_solution,
    explain_concept,
    mission_date,
    run_mission_code,
)
from mavericks.notifications.manager import NotificationHub
from mavericks.store.document_store import DocumentStore
from mavericks.users.service import ensure_profile, save_mission_progress

router = APIRouter(prefix="/missions", tags=["Daily Missions"])


def _resolve_date(requested: Optional[str], tz_name: str) -> str:
    if requested is None:
        return mission_date(tz_name=tz_name)
    try:
        return date_type.fromisoformat(requested).isoformat()
    except ValueError:
        raise HTTPException(status_code=422, detail="date must be YYYY-MM-DD")


@router.get("/languages")
async def list_languages():
    return {"languages": PROGRAMMING_LANGUAGES}


@router.get("/daily", response_model=ProgrammingQuestion)
async def get_daily_mission(
    language: str = Query("Python"),
    date: Optional[str] = Query(None),
    resolver: MissionCacheResolver = Depends(get_resolver),
    tz_name: str = Depends(get_mission_timezone),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Today's mission in the requested language.
    Generated on first request for a date, cached afterwards.
    """
    if language not in PROGRAMMING_LANGUAGES:
        raise HTTPException(status_code=422, detail=f"Language must be one of: {PROGRAMMING_LANGUAGES}")
    return await resolver.resolve_mission(_resolve_date(date, tz_name), language)


@router.get("/concepts/explain")
async def get_concept_explanation(
    concept: str = Query(..., min_length=1, max_length=300),
    provider=Depends(get_provider),
    user: CurrentUser = Depends(get_current_user),
):
    return {"concept": concept, "explanation": await explain_concept(provider, concept)}


@router.post("/daily/run", response_model=CodeExecutionResult)
async def run_daily_mission(
    payload: MissionCodeRequest,
    resolver: MissionCacheResolver = Depends(get_resolver),
    provider=Depends(get_provider),
    tz_name: str = Depends(get_mission_timezone),
    user: CurrentUser = Depends(get_current_user),
):
    """Run code against the visible test cases"""
    question = await resolver.resolve_mission(_resolve_date(payload.date, tz_name), payload.language)
    return await run_mission_code(provider, payload.code, payload.language, question)


@router.post("/daily/evaluate", response_model=SolutionEvaluation)
async def evaluate_daily_mission(
    payload: MissionCodeRequest,
    resolver: MissionCacheResolver = Depends(get_resolver),
    provider=Depends(get_provider),
    tz_name: str = Depends(get_mission_timezone),
    user: CurrentUser = Depends(get_current_user),
):
    question = await resolver.resolve_mission(_resolve_date(payload.date, tz_name), payload.language)
    return await evaluate_solution(provider, question, payload.code, payload.language)


@router.post("/daily/progress", response_model=ProgressResult)
async def save_daily_progress(
    payload: MissionProgressUpdate,
    store: DocumentStore = Depends(get_store),
    hub: NotificationHub = Depends(get_hub),
    tz_name: str = Depends(get_mission_timezone),
    user: CurrentUser = Depends(get_current_user),
):
    """Save code in progress; completing the mission awards XP once per day"""
    today = mission_date(tz_name=tz_name)
    if payload.date is not None and _resolve_date(payload.date, tz_name) != today:
        raise HTTPException(status_code=422, detail="Progress can only be saved for today's mission")
    await ensure_profile(store, user)
    return await save_mission_progress(store, user.uid, today, payload, hub=hub)
