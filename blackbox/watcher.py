"""Filesystem watcher that maps git state changes back to repositories."""

import os
import queue
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

_DEBOUNCE_SECONDS = 1.0

PathLike = Union[str, Path]


def _canonical(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return path


def path_to_repo(event_path: PathLike, watched_repos: Iterable[PathLike]) -> Optional[Path]:
    """Map an event path to the watched repo whose ``.git`` directory contains it."""
    watched = {Path(p) for p in watched_repos}
    event_path = Path(event_path)
    for ancestor in (event_path, *event_path.parents):
        if ancestor.name == ".git" and ancestor.parent in watched:
            return ancestor.parent
    return None


def worktree_gitdir(path: PathLike) -> Optional[Path]:
    """Return the resolved git directory if ``path`` is a linked worktree.

    A linked worktree has a ``.git`` file holding ``gitdir: <dir>``.
    """
    dot_git = Path(path) / ".git"
    if not dot_git.is_file():
        return None
    try:
        content = dot_git.read_text()
    except (OSError, UnicodeDecodeError):
        return None
    for line in content.splitlines():
        if line.startswith("gitdir:"):
            target = Path(line[len("gitdir:"):].strip())
            if not target.is_absolute():
                target = Path(path) / target
            return _canonical(target)
    return None


@dataclass
class WatcherEvents:
    """Result of one ``recv_events`` call."""

    changed_repos: List[Path] = field(default_factory=list)
    new_worktrees: List[Path] = field(default_factory=list)


class _QueueHandler(FileSystemEventHandler):
    def __init__(self, sink: "queue.Queue[List[Path]]") -> None:
        super().__init__()
        self._sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        paths = [Path(os.fsdecode(event.src_path))]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(Path(os.fsdecode(dest)))
        self._sink.put(paths)


class RepoWatcher:
    """Watch git state of repositories and the worktree directories inside them.

    Worktrees are watched through their own git directory (HEAD only); regular
    repos through ``.git/`` and, recursively, ``.git/refs/heads/``. With a
    worktree directory name, ``<repo>/<name>/`` is watched for new worktrees.
    """

    def __init__(self, repos: Iterable[PathLike], worktree_dir_name: Optional[str] = None) -> None:
        self._queue: "queue.Queue[List[Path]]" = queue.Queue()
        self._handler = _QueueHandler(self._queue)
        self._observer = Observer()
        self._observer.start()
        self.repos: List[Path] = []
        self._watched_to_idx: List[Tuple[Path, int]] = []
        self._worktree_parent_dirs: Set[Path] = set()
        self._worktree_dir_name = worktree_dir_name
        for repo in repos:
            self._add(Path(repo))
        self._sort()

    def __enter__(self) -> "RepoWatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _schedule(self, path: Path, recursive: bool) -> None:
        try:
            self._observer.schedule(self._handler, str(path), recursive=recursive)
        except OSError:
            pass

    def _add(self, repo: Path) -> None:
        idx = len(self.repos)
        canon = _canonical(repo)
        gitdir = worktree_gitdir(canon)
        if gitdir is not None:
            if gitdir.is_dir():
                self._schedule(gitdir, recursive=False)
                self._watched_to_idx.append((gitdir, idx))
        else:
            git_dir = canon / ".git"
            git_refs = git_dir / "refs" / "heads"
            if git_dir.is_dir():
                self._schedule(git_dir, recursive=False)
                self._watched_to_idx.append((git_dir, idx))
            if git_refs.is_dir():
                self._schedule(git_refs, recursive=True)
                self._watched_to_idx.append((git_refs, idx))
            if self._worktree_dir_name:
                wt_parent = canon / self._worktree_dir_name
                if wt_parent.is_dir():
                    self._schedule(wt_parent, recursive=False)
                    self._worktree_parent_dirs.add(wt_parent)
        self.repos.append(repo)

    def _sort(self) -> None:
        # Longest first so the most specific watched directory wins.
        self._watched_to_idx.sort(key=lambda item: len(str(item[0])), reverse=True)

    def watch_repo(self, repo: PathLike) -> None:
        """Start watching another repository."""
        self._add(Path(repo))
        self._sort()

    def watched_dirs(self) -> List[Path]:
        """Directories being watched, git directories first."""
        return [path for path, _ in self._watched_to_idx] + list(self._worktree_parent_dirs)

    def recv_events(self, debounce_map: Dict[Path, float], timeout: float) -> WatcherEvents:
        """Wait up to ``timeout`` seconds for events, then drain what is pending.

        Repos are reported with the paths they were added under, at most once
        per second each; ``debounce_map`` keeps the last report times.
        """
        events = WatcherEvents()
        try:
            self._process(self._queue.get(timeout=timeout), debounce_map, events)
        except queue.Empty:
            return events
        while True:
            try:
                paths = self._queue.get_nowait()
            except queue.Empty:
                return events
            self._process(paths, debounce_map, events)

    def _process(self, paths: List[Path], debounce_map: Dict[Path, float], events: WatcherEvents) -> None:
        now = time.monotonic()
        for path in paths:
            if self._is_worktree_parent_event(path):
                if path.is_dir() and worktree_gitdir(path) is not None and path not in events.new_worktrees:
                    events.new_worktrees.append(path)
                continue
            idx = self._repo_index_for_path(path)
            if idx is None:
                continue
            original = self.repos[idx]
            last = debounce_map.get(original)
            if last is None or now - last >= _DEBOUNCE_SECONDS:
                debounce_map[original] = now
                if original not in events.changed_repos:
                    events.changed_repos.append(original)

    def _is_worktree_parent_event(self, event_path: Path) -> bool:
        return any(
            event_path != wt_dir and event_path.is_relative_to(wt_dir)
            for wt_dir in self._worktree_parent_dirs
        )

    def _repo_index_for_path(self, event_path: Path) -> Optional[int]:
        for watched_dir, idx in self._watched_to_idx:
            if event_path.is_relative_to(watched_dir):
                return idx
        return None

    def close(self) -> None:
        """Stop the underlying observer."""
        self._observer.stop()
        self._observer.join()