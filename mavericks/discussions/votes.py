"""
Vote reconciliation for threads and replies

A user holds at most one vote per item. Clicking the same vote again removes
it; clicking the other vote switches it in one step.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel


class VoteType(str, Enum):
    UP = "up"
    DOWN = "down"


class VoteTally(BaseModel):
    upvotes: int = 0
    downvotes: int = 0
    upvoted_by: List[str] = []
    downvoted_by: List[str] = []

    @classmethod
    def from_doc(cls, doc: dict) -> "VoteTally":
        return cls(
            upvotes=doc.get("upvotes") or 0,
            downvotes=doc.get("downvotes") or 0,
            upvoted_by=list(doc.get("upvoted_by") or []),
            downvoted_by=list(doc.get("downvoted_by") or []),
        )

    def vote_of(self, user_id: str):
        if user_id in self.upvoted_by:
            return VoteType.UP
        if user_id in self.downvoted_by:
            return VoteType.DOWN
        return None

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


def apply_vote(tally: VoteTally, user_id: str, vote_type: VoteType) -> VoteTally:
    """
    Return the tally after `user_id` clicks `vote_type`.

    Counts are taken from the voter lists, so upvotes == len(upvoted_by) and
    downvotes == len(downvoted_by) after every call.
    """
    vote_type = VoteType(vote_type)
    upvoted_by = [uid for uid in tally.upvoted_by]
    downvoted_by = [uid for uid in tally.downvoted_by]

    same, other = (upvoted_by, downvoted_by) if vote_type == VoteType.UP else (downvoted_by, upvoted_by)

    if user_id in same:
        same.remove(user_id)
    else:
        same.append(user_id)
        if user_id in other:
            other.remove(user_id)

    return VoteTally(
        upvotes=len(upvoted_by),
        downvotes=len(downvoted_by),
        upvoted_by=upvoted_by,
        downvoted_by=downvoted_by,
    )
