from datetime import datetime, timedelta, timezone

from blackbox.models import (
    MIN_TIMESTAMP,
    ActivityEvent,
    AiSessionInfo,
    RepoSummary,
    ReviewInfo,
)

BASE = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


def _repo(**kwargs):
    return RepoSummary(repo_path="/tmp/test", repo_name="test", **kwargs)


def test_empty_repo_returns_min_timestamp():
    repo = _repo()
    assert repo.latest_timestamp() == MIN_TIMESTAMP
    assert repo.latest_timestamp() == datetime.min.replace(tzinfo=timezone.utc)


def test_defaults_are_empty():
    repo = _repo()
    assert repo.commits == 0
    assert repo.events == []
    assert repo.reviews == []
    assert repo.ai_sessions == []
    assert repo.estimated_time == timedelta(0)


def test_default_lists_are_not_shared():
    first = _repo()
    second = _repo()
    first.branches.append("main")
    assert second.branches == []


def test_latest_from_events_only():
    events = [
        ActivityEvent("commit", BASE),
        ActivityEvent("commit", BASE + timedelta(minutes=5)),
    ]
    repo = _repo(events=events)
    assert repo.latest_timestamp() == BASE + timedelta(minutes=5)


def test_latest_picks_review_when_newer():
    review_time = BASE + timedelta(hours=1)
    repo = _repo(
        events=[ActivityEvent("commit", BASE)],
        reviews=[ReviewInfo(pr_number=7, action="approved", reviewed_at=review_time)],
    )
    assert repo.latest_timestamp() == review_time


def test_latest_picks_session_when_newest():
    session_start = BASE + timedelta(hours=2)
    repo = _repo(
        events=[ActivityEvent("commit", BASE)],
        reviews=[ReviewInfo(1, "commented", BASE + timedelta(hours=1))],
        ai_sessions=[AiSessionInfo("s1", session_start)],
    )
    assert repo.latest_timestamp() == session_start


def test_latest_uses_last_entry_of_each_list():
    early = BASE
    late = BASE + timedelta(hours=3)
    repo = _repo(events=[ActivityEvent("commit", late), ActivityEvent("commit", early)])
    assert repo.latest_timestamp() == early


def test_latest_is_at_least_every_last_entry():
    events = [ActivityEvent("merge", BASE + timedelta(minutes=30))]
    reviews = [ReviewInfo(3, "approved", BASE + timedelta(minutes=10))]
    sessions = [AiSessionInfo("s", BASE + timedelta(minutes=20))]
    repo = _repo(events=events, reviews=reviews, ai_sessions=sessions)
    latest = repo.latest_timestamp()
    assert latest >= events[-1].timestamp
    assert latest >= reviews[-1].reviewed_at
    assert latest >= sessions[-1].started_at


def test_ai_session_active_flag():
    running = AiSessionInfo("test", BASE, duration=timedelta(minutes=30))
    ended = AiSessionInfo(
        "test",
        BASE - timedelta(minutes=45),
        ended_at=BASE,
        duration=timedelta(minutes=45),
        turns=10,
    )
    assert running.active is True
    assert ended.active is False
    assert ended.turns == 10


def test_activity_event_fields():
    event = ActivityEvent(
        event_type="commit",
        timestamp=BASE,
        branch="main",
        commit_hash="abc123",
        message="test commit",
    )
    assert event.branch == "main"
    assert event.commit_hash == "abc123"
    assert event.message == "test commit"