import shutil
import time
from pathlib import Path

import pytest

from blackbox.watcher import RepoWatcher, WatcherEvents, path_to_repo, worktree_gitdir


def make_repo(root: Path) -> Path:
    (root / ".git" / "refs" / "heads").mkdir(parents=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    return root


def collect(watcher, debounce, seconds=5.0, want=lambda ev: bool(ev.changed_repos)):
    total = WatcherEvents()
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        ev = watcher.recv_events(debounce, 0.3)
        total.changed_repos.extend(p for p in ev.changed_repos if p not in total.changed_repos)
        total.new_worktrees.extend(p for p in ev.new_worktrees if p not in total.new_worktrees)
        if want(total):
            break
    return total


def test_path_to_repo_finds_watched_root():
    assert path_to_repo("/r/.git/refs/heads/main", [Path("/r")]) == Path("/r")


def test_path_to_repo_unwatched_is_none():
    assert path_to_repo("/r/.git/HEAD", [Path("/other")]) is None


def test_path_to_repo_outside_git_is_none():
    assert path_to_repo("/r/src/main.rs", [Path("/r")]) is None


def test_worktree_gitdir_reads_gitdir_file(tmp_path):
    target = tmp_path / "main" / ".git" / "worktrees" / "wt"
    target.mkdir(parents=True)
    wt = tmp_path / "wt"
    wt.mkdir()
    (wt / ".git").write_text(f"gitdir: {target}\n")
    assert worktree_gitdir(wt) == target.resolve()


def test_worktree_gitdir_relative(tmp_path):
    target = tmp_path / "store"
    target.mkdir()
    wt = tmp_path / "wt"
    wt.mkdir()
    (wt / ".git").write_text("gitdir: ../store\n")
    assert worktree_gitdir(wt) == target.resolve()


def test_worktree_gitdir_regular_repo_is_none(tmp_path):
    assert worktree_gitdir(make_repo(tmp_path / "r")) is None


def test_watched_dirs_for_regular_repo(tmp_path):
    repo = make_repo(tmp_path / "r")
    (repo / ".worktrees").mkdir()
    with RepoWatcher([repo], ".worktrees") as watcher:
        dirs = watcher.watched_dirs()
    canon = repo.resolve()
    assert set(dirs) == {canon / ".git", canon / ".git" / "refs" / "heads", canon / ".worktrees"}
    assert dirs[0] == canon / ".git" / "refs" / "heads"


def test_watch_repo_adds_directories(tmp_path):
    first = make_repo(tmp_path / "a")
    second = make_repo(tmp_path / "b")
    with RepoWatcher([first], None) as watcher:
        watcher.watch_repo(second)
        assert watcher.repos == [first, second]
        assert second.resolve() / ".git" in watcher.watched_dirs()


def test_worktree_repo_watches_its_gitdir(tmp_path):
    gitdir = tmp_path / "main" / ".git" / "worktrees" / "wt"
    gitdir.mkdir(parents=True)
    wt = tmp_path / "wt"
    wt.mkdir()
    (wt / ".git").write_text(f"gitdir: {gitdir}\n")
    with RepoWatcher([wt], ".worktrees") as watcher:
        assert watcher.watched_dirs() == [gitdir.resolve()]


def test_timeout_without_events_is_empty(tmp_path):
    repo = make_repo(tmp_path / "r")
    with RepoWatcher([repo], None) as watcher:
        time.sleep(0.2)
        watcher.recv_events({}, 0.1)
        events = watcher.recv_events({}, 0.2)
    assert events.changed_repos == []
    assert events.new_worktrees == []


def test_change_reported_with_original_path(tmp_path):
    repo = make_repo(tmp_path / "r")
    debounce = {}
    with RepoWatcher([repo], None) as watcher:
        time.sleep(0.2)
        (repo / ".git" / "HEAD").write_text("ref: refs/heads/feature\n")
        events = collect(watcher, debounce)
    assert events.changed_repos == [repo]
    assert repo in debounce


def test_recent_poll_is_debounced(tmp_path):
    repo = make_repo(tmp_path / "r")
    debounce = {repo: time.monotonic() + 60}
    with RepoWatcher([repo], None) as watcher:
        time.sleep(0.2)
        (repo / ".git" / "HEAD").write_text("ref: refs/heads/feature\n")
        events = collect(watcher, debounce, seconds=1.5)
    assert events.changed_repos == []


def test_new_worktree_detected(tmp_path):
    repo = make_repo(tmp_path / "r")
    (repo / ".worktrees").mkdir()
    staging = tmp_path / "staging" / "wt1"
    gitdir = repo / ".git" / "worktrees" / "wt1"
    gitdir.mkdir(parents=True)
    staging.mkdir(parents=True)
    (staging / ".git").write_text(f"gitdir: {gitdir}\n")
    with RepoWatcher([repo], ".worktrees") as watcher:
        time.sleep(0.2)
        shutil.move(str(staging), str(repo / ".worktrees" / "wt1"))
        events = collect(watcher, {}, want=lambda ev: bool(ev.new_worktrees))
    assert events.new_worktrees == [repo.resolve() / ".worktrees" / "wt1"]


@pytest.mark.parametrize("name", [None, ".worktrees"])
def test_missing_repo_watches_nothing(tmp_path, name):
    missing = tmp_path / "nope"
    with RepoWatcher([missing], name) as watcher:
        assert watcher.watched_dirs() == []
        assert watcher.repos == [missing]