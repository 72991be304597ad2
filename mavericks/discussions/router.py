from typing import List

from fastapi import APIRouter, Depends, HTTPException

from mavericks.core.auth import CurrentUser, get_current_user, require_admin
from mavericks.core.dependencies import get_store
from mavericks.discussions import service
from mavericks.discussions.models import (
    DiscussionThread,
    ReplyCreate,
    StatusUpdate,
    ThreadCreate,
    ThreadFilters,
    ThreadWithReplies,
    VoteAction,
)
from mavericks.store.document_store import DocumentStore

router = APIRouter(prefix="/discussions", tags=["Discussions"])


@router.post("")
async def create_thread(
    payload: ThreadCreate,
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    thread_id = await service.create_thread(store, payload, user)
    return {"success": True, "thread_id": thread_id}


@router.get("", response_model=List[DiscussionThread])
async def list_threads(
    filters: ThreadFilters = Depends(),
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    return await service.get_threads(store, filters, user.uid)


@router.get("/{thread_id}", response_model=ThreadWithReplies)
async def get_thread(
    thread_id: str,
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    result = await service.get_thread_with_replies(store, thread_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Thread not found")
    return result


@router.post("/{thread_id}/replies")
async def add_reply(
    thread_id: str,
    payload: ReplyCreate,
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    reply_id = await service.add_reply(store, thread_id, payload, user)
    return {"success": True, "reply_id": reply_id}


@router.patch("/{thread_id}/status")
async def update_status(
    thread_id: str,
    payload: StatusUpdate,
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    await service.set_status(store, thread_id, payload.status, user)
    return {"success": True, "status": payload.status}


@router.delete("/{thread_id}")
async def delete_thread(
    thread_id: str,
    store: DocumentStore = Depends(get_store),
    admin: CurrentUser = Depends(require_admin),
):
    await service.delete_thread(store, thread_id)
    return {"success": True, "thread_id": thread_id}


@router.delete("/{thread_id}/replies/{reply_id}")
async def delete_reply(
    thread_id: str,
    reply_id: str,
    store: DocumentStore = Depends(get_store),
    admin: CurrentUser = Depends(require_admin),
):
    await service.delete_reply(store, thread_id, reply_id)
    return {"success": True, "reply_id": reply_id}


@router.post("/{thread_id}/vote")
async def vote_thread(
    thread_id: str,
    vote: VoteAction,
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Upvote or downvote a thread.
    Repeating a vote removes it; the opposite vote switches it.
    """
    tally = await service.vote_on_thread(store, thread_id, user.uid, vote.vote_type)
    if tally is None:
        raise HTTPException(status_code=404, detail="Thread not found")
    return {"success": True, "tally": tally, "user_vote": tally.vote_of(user.uid)}


@router.post("/{thread_id}/replies/{reply_id}/vote")
async def vote_reply(
    thread_id: str,
    reply_id: str,
    vote: VoteAction,
    store: DocumentStore = Depends(get_store),
    user: CurrentUser = Depends(get_current_user),
):
    tally = await service.vote_on_reply(store, thread_id, reply_id, user.uid, vote.vote_type)
    if tally is None:
        raise HTTPException(status_code=404, detail="Reply not found")
    return {"success": True, "tally": tally, "user_vote": tally.vote_of(user.uid)}
