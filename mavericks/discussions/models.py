from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from mavericks.discussions.votes import VoteType


class DiscussionCategory(str, Enum):
    QUESTIONS = "Questions"
    DISCUSSIONS = "Discussions"
    HELP = "Help"
    TUTORIALS = "Tutorials"
    GENERAL = "General"


class DiscussionDifficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class DiscussionStatus(str, Enum):
    UNSOLVED = "Unsolved"
    SOLVED = "Solved"


class ThreadScope(str, Enum):
    ALL = "All Threads"
    MINE = "My Threads"
    MY_REPLIES = "My Replies"


class ThreadSort(str, Enum):
    NEWEST = "Newest"
    TOP = "Top"
    MOST_REPLIES = "Most Replies"


# ==================== REQUEST MODELS ====================

class ThreadCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    category: DiscussionCategory = DiscussionCategory.GENERAL
    language: str = "General"
    difficulty: DiscussionDifficulty = DiscussionDifficulty.BEGINNER
    tags: List[str] = []


class ReplyCreate(BaseModel):
    content: str = Field(..., min_length=1)


class VoteAction(BaseModel):
    vote_type: VoteType


class StatusUpdate(BaseModel):
    status: DiscussionStatus


class ThreadFilters(BaseModel):
    """'All ...' values mean no filter"""
    category: str = "All Categories"
    language: str = "All Languages"
    difficulty: str = "All Levels"
    status: str = "All Posts"
    sort_by: ThreadSort = ThreadSort.NEWEST
    scope: ThreadScope = ThreadScope.ALL


# ==================== RESPONSE MODELS ====================

class DiscussionReply(BaseModel):
    id: str
    thread_id: str
    author_id: str
    author_name: str
    author_avatar: str = ""
    content: str
    timestamp: Optional[datetime] = None
    upvotes: int = 0
    downvotes: int = 0
    upvoted_by: List[str] = []
    downvoted_by: List[str] = []


class DiscussionThread(BaseModel):
    id: str
    title: str
    content: str
    author_id: str
    author_name: str
    author_avatar: str = ""
    category: DiscussionCategory
    language: str
    difficulty: DiscussionDifficulty
    status: DiscussionStatus = DiscussionStatus.UNSOLVED
    tags: List[str] = []
    timestamp: Optional[datetime] = None
    reply_count: int = 0
    replied_by: List[str] = []
    upvotes: int = 0
    downvotes: int = 0
    upvoted_by: List[str] = []
    downvoted_by: List[str] = []


class ThreadWithReplies(BaseModel):
    thread: DiscussionThread
    replies: List[DiscussionReply]
