"""Shell snippets that report directory changes to the recorder."""

_FUNC = "_blackbox_hook"
_INDENT = "  "


def _notify(pwd: str, background: str) -> str:
    return f"{_INDENT}blackbox _notify-dir {pwd} &>/dev/null {background}"


def _script(*lines: str) -> str:
    return "\n".join(lines) + "\n"


def _posix_function(background: str) -> list[str]:
    return [f"{_FUNC}() {{", _notify('"$PWD"', background), "}"]


def _zsh() -> str:
    return _script(
        *_posix_function("&!"),
        f"chpwd_functions+=({_FUNC})",
    )


def _bash() -> str:
    guard = "_BLACKBOX_HOOKED"
    return _script(
        *_posix_function("&"),
        f'if [[ -z "${guard}" ]]; then',
        f"{_INDENT}{guard}=1",
        f'{_INDENT}PROMPT_COMMAND="{_FUNC};${{PROMPT_COMMAND:-}}"',
        "fi",
    )


def _fish() -> str:
    return _script(
        f"function {_FUNC} --on-variable PWD",
        _notify("$PWD", "&"),
        "end",
    )


_HOOKS = {
    "zsh": _zsh,
    "bash": _bash,
    "fish": _fish,
}


def generate_hook(shell: str) -> str:
    """Return the hook script for ``shell``.

    The script runs ``blackbox _notify-dir $PWD`` whenever the directory
    changes. Raises ``ValueError`` for shells other than zsh, bash and fish.
    """
    try:
        builder = _HOOKS[shell]
    except KeyError:
        raise ValueError(
            f"Unsupported shell: {shell}. Supported: zsh, bash, fish"
        ) from None
    return builder()