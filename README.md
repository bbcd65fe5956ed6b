# blackbox

Building blocks for a flight recorder of your development day: something that
passively follows what happens in your git repositories (commits, branch
switches, merges, new worktrees) and turns it into a live picture of your work.

This package is a Python library. It provides the pieces below; it does not
come with a command of its own.

## Modules

### `blackbox.shell_hook`

`generate_hook(shell)` returns a hook script for `"zsh"`, `"bash"` or
`"fish"`. Once sourced by the shell, the script runs
`blackbox _notify-dir $PWD` in the background whenever the working directory
changes (zsh through `chpwd_functions`, bash through `PROMPT_COMMAND`, fish
through a `--on-variable PWD` function). Any other shell raises `ValueError`
naming the supported ones.

### `blackbox.service`

Registration of a background service that starts `<exe> run-foreground` at
login.

- `generate_plist(exe_path, data_dir)` renders a launchd agent plist with the
  label `com.blackbox.agent`, `RunAtLoad` and `KeepAlive` set, the current
  `PATH` copied into its environment, and stdout/stderr going to
  `<data_dir>/blackbox.log` and `<data_dir>/blackbox.err.log`.
- `generate_unit_file(exe_path)` renders a systemd user unit that restarts on
  failure.
- `plist_path()` is `~/Library/LaunchAgents/com.blackbox.agent.plist`;
  `unit_path()` is `~/.config/systemd/user/blackbox.service`.
- `install(data_dir, exe_path=None)` writes the file for the current platform
  and loads it (`launchctl bootstrap`, falling back to `launchctl load`, on
  macOS; `systemctl --user daemon-reload` and `enable --now` on Linux). It
  returns the path written. Without `exe_path` it uses the `blackbox`
  executable found on `PATH`, or the running script.
- `uninstall()` unloads and removes the file, returning `False` if nothing was
  installed.

A failing `launchctl` or `systemctl` call, or an unsupported platform, raises
`ServiceError`; `format_command_error(cmd_desc, stderr)` builds its message
from the tool's trimmed stderr.

### `blackbox.rhythm`

`rhythm_window(days, output_format, now=None)` checks a rhythm-report request
and returns its UTC `(from, to)` range: from local midnight `days` days before
today up to `now`. `days` below 1 and `OutputFormat.CSV` raise `ValueError`;
`OutputFormat.PRETTY` and `OutputFormat.JSON` are accepted.

### `blackbox.watcher`

- `RepoWatcher(repos, worktree_dir_name=None)` watches, for each repository,
  `.git/` and (recursively) `.git/refs/heads/`; for a linked worktree it
  watches the worktree's own git directory instead. With a worktree directory
  name such as `".worktrees"`, `<repo>/<name>/` is watched for new worktrees.
- `recv_events(debounce_map, timeout)` waits up to `timeout` seconds, drains
  pending events and returns a `WatcherEvents` with `changed_repos` (the paths
  the repos were added under, at most once per second each, tracked in
  `debounce_map`) and `new_worktrees`.
- `watch_repo(repo)` adds a repository later, `watched_dirs()` lists what is
  watched, `repos` holds the repositories, and `close()` stops watching. The
  watcher is also a context manager.
- `path_to_repo(event_path, watched_repos)` maps a path inside a `.git`
  directory to its repository; `worktree_gitdir(path)` returns the git
  directory a linked worktree's `.git` file points to, or `None`.

### `blackbox.models`

Dataclasses for activity data: `ActivityEvent`, `ReviewInfo`, `AiSessionInfo`
(with an `active` property) and `RepoSummary`, whose `latest_timestamp()`
returns the latest of its last event, review and AI session.

### `blackbox.tui`

State and data shaping for a live dashboard:

- `sort_repos(repos, mode)` orders repositories by `SortMode.RECENT`, `TIME`
  or `COMMITS`, largest or latest first; `SortMode.next()` cycles the modes.
- `build_feed(repos)` merges events, reviews and AI sessions into `FeedEvent`s,
  newest first, collapses runs with the same repo, type and message within five
  minutes (`collapse_similar_events`) and keeps fifty. `FeedEvent.color()`
  gives a `Color` per event type.
- `build_sparkline(repos, range_start, now=None)` counts git events in sixteen
  half-hour buckets over the last eight hours.
- `App` holds the dashboard state. `load_repos(repos, range_start, now=None)`
  fills it; `handle_key(key, ctrl=False)` quits on `q` or Ctrl-C, cycles the
  sort on `s`, scrolls on `j`/`k` or `"down"`/`"up"`, and calls the optional
  `on_refresh` callback on `r` and after a sort change.

## Example

```python
from blackbox.service import generate_unit_file
from blackbox.shell_hook import generate_hook

print(generate_hook("zsh"))
print(generate_unit_file("/usr/local/bin/blackbox"))
```

```python
from pathlib import Path

from blackbox.watcher import RepoWatcher

debounce = {}
with RepoWatcher([Path("~/code/project").expanduser()], ".worktrees") as watcher:
    events = watcher.recv_events(debounce, 5.0)
    for repo in events.changed_repos:
        print("changed:", repo)
    for worktree in events.new_worktrees:
        print("new worktree:", worktree)
```

## What it does not do

- There is no command-line program: no `blackbox` executable, no interactive
  setup wizard, and nothing that handles the `_notify-dir` or `run-foreground`
  calls that the generated hook and service files make.
- Nothing is stored: there is no database, no configuration file, and no
  reading of git history. The commit-rhythm statistics themselves (hour and
  weekday histograms, after-hours ratio, session lengths, burst patterns) are
  not computed; `blackbox.rhythm` only validates the request and gives its
  time window.
- The dashboard is a state model only: nothing draws it on a terminal, and it
  does not load data or check whether a recorder is running by itself.

## Requirements

Python 3.10 or later and `watchdog`. Service registration needs `launchctl`
on macOS or `systemctl --user` on Linux.