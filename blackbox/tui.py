"""State and data shaping for the live activity dashboard."""

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from blackbox.models import AiSessionInfo, RepoSummary

FEED_LIMIT = 50
SPARKLINE_BUCKETS = 16
_BUCKET_SECONDS = 1800
_SPARKLINE_SPAN = timedelta(hours=8)
_COLLAPSE_WINDOW = timedelta(minutes=5)


class Color(enum.Enum):
    """Display colours used by the dashboard."""

    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    CYAN = "cyan"
    MAGENTA = "magenta"
    WHITE = "white"


_EVENT_COLORS = {
    "commit": Color.GREEN,
    "branch_switch": Color.YELLOW,
    "merge": Color.BLUE,
    "review": Color.CYAN,
    "ai_session": Color.MAGENTA,
}


class SortMode(enum.Enum):
    """Ordering of the repository table."""

    RECENT = "recent"
    TIME = "time"
    COMMITS = "commits"

    def next(self) -> "SortMode":
        """The mode that follows this one in the cycle."""
        order = list(SortMode)
        return order[(order.index(self) + 1) % len(order)]

    def label(self) -> str:
        """Short name shown in the footer."""
        return self.value


@dataclass
class FeedEvent:
    """One line of the recent-events feed."""

    timestamp: datetime
    repo_name: str
    event_type: str
    branch: Optional[str] = None
    message: Optional[str] = None
    count: int = 1

    def color(self) -> Color:
        """Colour for this event type."""
        return _EVENT_COLORS.get(self.event_type, Color.WHITE)


def latest_timestamp(repo: RepoSummary) -> datetime:
    """Most recent activity time of a repository."""
    return repo.latest_timestamp()


def format_session_msg(session: AiSessionInfo) -> str:
    """Feed message for an AI session."""
    if session.ended_at is None:
        return "session (active)"
    minutes = int(session.duration.total_seconds() / 60)
    return f"session ({minutes}m)"


def collapse_similar_events(events: Iterable[FeedEvent]) -> List[FeedEvent]:
    """Merge consecutive events with the same repo, type and message within 5 minutes.

    Events are expected newest first; the newest timestamp of a run is kept
    and ``count`` records how many were merged.
    """
    collapsed: List[FeedEvent] = []
    for event in events:
        if collapsed:
            last = collapsed[-1]
            same_key = (
                last.repo_name == event.repo_name
                and last.event_type == event.event_type
                and last.message == event.message
            )
            if same_key and last.timestamp - event.timestamp <= _COLLAPSE_WINDOW:
                last.count += 1
                continue
        collapsed.append(
            FeedEvent(
                timestamp=event.timestamp,
                repo_name=event.repo_name,
                event_type=event.event_type,
                branch=event.branch,
                message=event.message,
                count=event.count,
            )
        )
    return collapsed


def build_sparkline(
    repos: Iterable[RepoSummary],
    range_start: datetime,
    now: Optional[datetime] = None,
) -> List[int]:
    """Count git events in 16 half-hour buckets over the last 8 hours.

    The window starts at eight hours before ``now`` or at ``range_start``,
    whichever is later.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    start = max(now - _SPARKLINE_SPAN, range_start)
    buckets = [0] * SPARKLINE_BUCKETS
    for repo in repos:
        for event in repo.events:
            offset = int((event.timestamp - start).total_seconds())
            if offset < 0:
                continue
            idx = offset // _BUCKET_SECONDS
            if idx < SPARKLINE_BUCKETS:
                buckets[idx] += 1
    return buckets


def sort_repos(repos: Iterable[RepoSummary], mode: SortMode) -> List[RepoSummary]:
    """Return the repos ordered for ``mode``, largest or latest first."""
    if mode is SortMode.RECENT:
        key: Callable[[RepoSummary], object] = latest_timestamp
    elif mode is SortMode.TIME:
        key = lambda repo: repo.estimated_time  # noqa: E731
    else:
        key = lambda repo: repo.commits  # noqa: E731
    return sorted(repos, key=key, reverse=True)


def build_feed(repos: Iterable[RepoSummary]) -> List[FeedEvent]:
    """Latest events, reviews and AI sessions across repos, newest first.

    Similar events are collapsed and at most 50 lines are kept.
    """
    feed: List[FeedEvent] = []
    for repo in repos:
        feed.extend(
            FeedEvent(
                timestamp=ev.timestamp,
                repo_name=repo.repo_name,
                event_type=ev.event_type,
                branch=ev.branch,
                message=ev.message,
            )
            for ev in repo.events
        )
        feed.extend(
            FeedEvent(
                timestamp=rev.reviewed_at,
                repo_name=repo.repo_name,
                event_type="review",
                message=f"{rev.action} PR #{rev.pr_number}",
            )
            for rev in repo.reviews
        )
        feed.extend(
            FeedEvent(
                timestamp=ses.started_at,
                repo_name=repo.repo_name,
                event_type="ai_session",
                message=format_session_msg(ses),
            )
            for ses in repo.ai_sessions
        )
    feed.sort(key=lambda ev: ev.timestamp, reverse=True)
    return collapse_similar_events(feed)[:FEED_LIMIT]


def _most_recent_repo(repos: Iterable[RepoSummary]) -> Optional[str]:
    best: Optional[RepoSummary] = None
    for repo in repos:
        # Ties go to the later repo.
        if best is None or latest_timestamp(repo) >= latest_timestamp(best):
            best = repo
    return best.repo_name if best is not None else None


@dataclass
class App:
    """State of the live dashboard.

    ``on_refresh`` is called with the app when the user asks for fresh data
    or changes the sort mode; it is expected to call ``load_repos``.
    ``total_time_mins`` is set by whoever holds the merged time estimate.
    """

    running: bool = True
    daemon_running: bool = False
    last_refresh: float = field(default_factory=time.monotonic)
    error: Optional[str] = None
    repos: List[RepoSummary] = field(default_factory=list)
    feed_events: List[FeedEvent] = field(default_factory=list)
    total_time_mins: int = 0
    active_repo: Optional[str] = None
    sparkline_data: List[int] = field(default_factory=lambda: [0] * SPARKLINE_BUCKETS)
    sort_mode: SortMode = SortMode.COMMITS
    selected: Optional[int] = None
    db_path: Optional[Path] = None
    session_gap_minutes: int = 120
    first_commit_minutes: int = 30
    on_refresh: Optional[Callable[["App"], None]] = None

    def load_repos(
        self,
        repos: Iterable[RepoSummary],
        range_start: datetime,
        now: Optional[datetime] = None,
    ) -> None:
        """Replace the dashboard data with ``repos``."""
        repos = list(repos)
        self.active_repo = _most_recent_repo(repos)
        self.repos = sort_repos(repos, self.sort_mode)
        self.feed_events = build_feed(self.repos)
        self.sparkline_data = build_sparkline(self.repos, range_start, now)
        self.last_refresh = time.monotonic()

    def _refresh(self) -> None:
        if self.on_refresh is not None:
            self.on_refresh(self)

    def handle_key(self, key: str, ctrl: bool = False) -> None:
        """React to a key press.

        ``key`` is a single character or one of ``"up"``, ``"down"``,
        ``"enter"``; ``ctrl`` tells whether Control was held.
        """
        if key == "q" or (key == "c" and ctrl):
            self.running = False
        elif key == "r":
            self._refresh()
        elif key == "s":
            self.sort_mode = self.sort_mode.next()
            self.repos = sort_repos(self.repos, self.sort_mode)
            self._refresh()
        elif key in ("j", "down"):
            self.scroll_down()
        elif key in ("k", "up"):
            self.scroll_up()

    def scroll_down(self) -> None:
        """Move the feed selection down, stopping at the last event."""
        if not self.feed_events:
            return
        last = len(self.feed_events) - 1
        self.selected = 0 if self.selected is None else min(self.selected + 1, last)

    def scroll_up(self) -> None:
        """Move the feed selection up, stopping at the first event."""
        self.selected = 0 if self.selected is None else max(self.selected - 1, 0)