import logging
from typing import Awaitable, Callable, Dict, Optional, Set

from mavericks.discussions.votes import VoteTally, VoteType, apply_vote

logger = logging.getLogger(__name__)

FetchTally = Callable[[str], Awaitable[Optional[VoteTally]]]
CommitVote = Callable[[str, str, VoteType], Awaitable[None]]


class OptimisticVoteBoard:
    """
    Local vote tallies that update before the authoritative write lands.
    If the write fails, the local copy is replaced by a fresh read.
    """

    def __init__(self, fetch: FetchTally, commit: CommitVote):
        self.fetch = fetch
        self.commit = commit
        self.local: Dict[str, VoteTally] = {}
        self.pending: Set[str] = set()

    async def load(self, content_id: str) -> Optional[VoteTally]:
        tally = await self.fetch(content_id)
        if tally is None:
            self.local.pop(content_id, None)
        else:
            self.local[content_id] = tally
        return tally

    def get(self, content_id: str) -> Optional[VoteTally]:
        return self.local.get(content_id)

    async def toggle(self, content_id: str, user_id: str, vote_type: VoteType) -> Optional[VoteTally]:
        """Apply the vote locally, then commit; returns the local tally afterwards"""
        current = self.local.get(content_id)
        if current is None:
            current = await self.load(content_id)
            if current is None:
                return None

        self.local[content_id] = apply_vote(current, user_id, vote_type)
        self.pending.add(content_id)
        try:
            await self.commit(content_id, user_id, vote_type)
        except Exception as e:
            logger.warning("Vote on %s failed, restoring stored tally: %s", content_id, e)
            await self.load(content_id)
        finally:
            self.pending.discard(content_id)
        return self.local.get(content_id)
