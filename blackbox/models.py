"""Activity records shown in reports and the live dashboard."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

MIN_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class ActivityEvent:
    """A single git event recorded for a repository."""

    event_type: str
    timestamp: datetime
    branch: Optional[str] = None
    commit_hash: Optional[str] = None
    message: Optional[str] = None


@dataclass
class ReviewInfo:
    """A pull-request review made by the user."""

    pr_number: int
    action: str
    reviewed_at: datetime


@dataclass
class AiSessionInfo:
    """An AI assistant session attributed to a repository."""

    session_id: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration: timedelta = timedelta(0)
    turns: Optional[int] = None

    @property
    def active(self) -> bool:
        """True while the session has not ended."""
        return self.ended_at is None


@dataclass
class RepoSummary:
    """Activity of one repository over a time range."""

    repo_path: str
    repo_name: str
    commits: int = 0
    branches: List[str] = field(default_factory=list)
    estimated_time: timedelta = timedelta(0)
    events: List[ActivityEvent] = field(default_factory=list)
    pr_info: Optional[Any] = None
    reviews: List[ReviewInfo] = field(default_factory=list)
    ai_sessions: List[AiSessionInfo] = field(default_factory=list)
    presence_intervals: List[Any] = field(default_factory=list)

    def latest_timestamp(self) -> datetime:
        """Latest of the last event, last review and last AI session.

        Each list is taken to be in chronological order. Returns
        ``MIN_TIMESTAMP`` when the repository has no activity at all.
        """
        candidates = [
            self.events[-1].timestamp if self.events else None,
            self.reviews[-1].reviewed_at if self.reviews else None,
            self.ai_sessions[-1].started_at if self.ai_sessions else None,
        ]
        return max((ts for ts in candidates if ts is not None), default=MIN_TIMESTAMP)