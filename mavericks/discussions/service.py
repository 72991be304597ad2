import logging
from datetime import datetime
from typing import List, Optional

from mavericks.core.auth import CurrentUser
from mavericks.core.errors import NotFoundError, PermissionDeniedError
from mavericks.discussions.models import (
    DiscussionReply,
    DiscussionStatus,
    DiscussionThread,
    ReplyCreate,
    ThreadCreate,
    ThreadFilters,
    ThreadScope,
    ThreadSort,
    ThreadWithReplies,
)
from mavericks.discussions.optimistic import OptimisticVoteBoard
from mavericks.discussions.votes import VoteTally, VoteType, apply_vote
from mavericks.store.document_store import DocumentStore

logger = logging.getLogger(__name__)

THREADS = "discussions"
REPLIES = "discussion_replies"

_SORT_FIELDS = {
    ThreadSort.NEWEST: "timestamp",
    ThreadSort.TOP: "upvotes",
    ThreadSort.MOST_REPLIES: "reply_count",
}


def _empty_votes() -> dict:
    return {"upvotes": 0, "downvotes": 0, "upvoted_by": [], "downvoted_by": []}


# ==================== THREADS ====================

async def create_thread(store: DocumentStore, data: ThreadCreate, author: CurrentUser) -> str:
    doc = {
        **data.model_dump(mode="json"),
        "author_id": author.uid,
        "author_name": author.name or "Anonymous",
        "author_avatar": author.avatar or "",
        "status": DiscussionStatus.UNSOLVED.value,
        "timestamp": datetime.utcnow(),
        "reply_count": 0,
        "replied_by": [],
        **_empty_votes(),
    }
    thread_id = await store.add(THREADS, doc)
    logger.info("Thread %s created by %s", thread_id, author.uid)
    return thread_id


async def get_threads(store: DocumentStore, filters: ThreadFilters, user_id: str) -> List[DiscussionThread]:
    where = {}
    if filters.scope == ThreadScope.MINE:
        where["author_id"] = user_id
    elif filters.scope == ThreadScope.MY_REPLIES:
        where["replied_by"] = user_id
    if filters.category != "All Categories":
        where["category"] = filters.category
    if filters.language != "All Languages":
        where["language"] = filters.language
    if filters.difficulty != "All Levels":
        where["difficulty"] = filters.difficulty
    if filters.status != "All Posts":
        where["status"] = filters.status

    order_by = [(_SORT_FIELDS[filters.sort_by], "desc")]
    docs = await store.query(THREADS, where, order_by=order_by)
    return [DiscussionThread.model_validate(doc) for doc in docs]


async def get_thread_with_replies(store: DocumentStore, thread_id: str) -> Optional[ThreadWithReplies]:
    thread = await store.get(THREADS, thread_id)
    if thread is None:
        return None
    replies = await store.query(REPLIES, {"thread_id": thread_id}, order_by=[("timestamp", "asc")])
    return ThreadWithReplies(
        thread=DiscussionThread.model_validate(thread),
        replies=[DiscussionReply.model_validate(reply) for reply in replies],
    )


async def set_status(store: DocumentStore, thread_id: str, status: DiscussionStatus, user: CurrentUser) -> None:
    thread = await store.get(THREADS, thread_id)
    if thread is None:
        raise NotFoundError("Thread not found")
    if thread["author_id"] != user.uid and not user.is_admin:
        raise PermissionDeniedError("Only the author or an admin can change the status")
    await store.update(THREADS, thread_id, {"status": DiscussionStatus(status).value})


async def delete_thread(store: DocumentStore, thread_id: str) -> None:
    """Delete a thread and every reply under it"""
    await store.delete_many(REPLIES, {"thread_id": thread_id})
    await store.delete(THREADS, thread_id)
    logger.info("Thread %s deleted", thread_id)


# ==================== REPLIES ====================

async def add_reply(store: DocumentStore, thread_id: str, data: ReplyCreate, author: CurrentUser) -> str:
    """Create the reply and bump the thread's reply counters in one transaction"""
    reply = {
        "thread_id": thread_id,
        "author_id": author.uid,
        "author_name": author.name or "Anonymous",
        "author_avatar": author.avatar or "",
        "content": data.content,
        "timestamp": datetime.utcnow(),
        **_empty_votes(),
    }

    async def write(txn):
        thread = await txn.get(THREADS, thread_id)
        if thread is None:
            raise NotFoundError("Thread not found")
        reply_id = await txn.add(REPLIES, reply)
        replied_by = list(thread.get("replied_by") or [])
        if author.uid not in replied_by:
            replied_by.append(author.uid)
        await txn.update(THREADS, thread_id, {
            "reply_count": (thread.get("reply_count") or 0) + 1,
            "replied_by": replied_by,
        })
        return reply_id

    return await store.run_transaction(write)


async def delete_reply(store: DocumentStore, thread_id: str, reply_id: str) -> None:
    """Delete a reply of `thread_id` and decrement that thread's reply count"""
    async def write(txn):
        reply = await txn.get(REPLIES, reply_id)
        if reply is None or reply.get("thread_id") != thread_id:
            raise NotFoundError("Reply not found")
        thread = await txn.get(THREADS, thread_id)
        await txn.delete(REPLIES, reply_id)
        if thread is not None:
            current_count = thread.get("reply_count") or 0
            if current_count > 0:
                await txn.update(THREADS, thread_id, {"reply_count": current_count - 1})

    await store.run_transaction(write)


# ==================== VOTES ====================

async def _vote(store: DocumentStore, collection: str, key: str, user_id: str,
                vote_type: VoteType) -> Optional[VoteTally]:
    """Re-read the tally inside a transaction and write the toggled result"""
    async def write(txn):
        doc = await txn.get(collection, key)
        if doc is None:
            return None
        tally = apply_vote(VoteTally.from_doc(doc), user_id, vote_type)
        await txn.update(collection, key, tally.model_dump())
        return tally

    return await store.run_transaction(write)


async def vote_on_thread(store: DocumentStore, thread_id: str, user_id: str,
                         vote_type: VoteType) -> Optional[VoteTally]:
    return await _vote(store, THREADS, thread_id, user_id, vote_type)


async def vote_on_reply(store: DocumentStore, thread_id: str, reply_id: str, user_id: str,
                        vote_type: VoteType) -> Optional[VoteTally]:
    reply = await store.get(REPLIES, reply_id)
    if reply is None or reply.get("thread_id") != thread_id:
        return None
    return await _vote(store, REPLIES, reply_id, user_id, vote_type)


async def _get_tally(store: DocumentStore, collection: str, key: str) -> Optional[VoteTally]:
    doc = await store.get(collection, key)
    return VoteTally.from_doc(doc) if doc is not None else None


def thread_vote_board(store: DocumentStore) -> OptimisticVoteBoard:
    """Local thread tallies committed through `vote_on_thread`"""
    async def fetch(thread_id: str) -> Optional[VoteTally]:
        return await _get_tally(store, THREADS, thread_id)

    async def commit(thread_id: str, user_id: str, vote_type: VoteType) -> None:
        await vote_on_thread(store, thread_id, user_id, vote_type)

    return OptimisticVoteBoard(fetch, commit)
