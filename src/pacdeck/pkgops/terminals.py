"""Terminal emulator discovery and interactive command wrapping."""

from __future__ import annotations

import logging as py_logging
import shlex
import shutil
from collections.abc import Callable, Iterator, Sequence

from pacdeck.pkgops.models import TerminalCandidate

logger = py_logging.getLogger(__name__)

TERMINAL_CANDIDATES: tuple[TerminalCandidate, ...] = (
    TerminalCandidate("kitty", ("-e", "bash", "-c")),
    TerminalCandidate("alacritty", ("-e", "bash", "-c")),
    TerminalCandidate("wezterm", ("start", "--", "bash", "-c")),
    TerminalCandidate("gnome-terminal", ("--", "bash", "-c")),
    TerminalCandidate("konsole", ("-e", "bash", "-c")),
    TerminalCandidate("xterm", ("-e", "bash", "-c")),
)

CLOSE_PROMPT = "Command finished. Press Enter to close this terminal..."


def terminal_names(candidates: Sequence[TerminalCandidate] = TERMINAL_CANDIDATES) -> list[str]:
    return [candidate.name for candidate in candidates]


def prioritize_terminal(
    candidates: Sequence[TerminalCandidate],
    preferred: str,
) -> tuple[TerminalCandidate, ...]:
    """Move the preferred emulator to the front, keeping the rest in order."""
    name = preferred.strip()
    if not name:
        return tuple(candidates)
    chosen = [candidate for candidate in candidates if candidate.name == name]
    if not chosen:
        logger.warning("terminal-preference unknown=%s", name)
        return tuple(candidates)
    rest = [candidate for candidate in candidates if candidate.name != name]
    return (*chosen, *rest)


def iter_available_terminals(
    candidates: Sequence[TerminalCandidate] = TERMINAL_CANDIDATES,
    *,
    which: Callable[[str], str | None] = shutil.which,
) -> Iterator[TerminalCandidate]:
    for candidate in candidates:
        if which(candidate.name):
            yield candidate
        else:
            logger.debug("terminal-probe missing=%s", candidate.name)


def find_terminal(
    candidates: Sequence[TerminalCandidate] = TERMINAL_CANDIDATES,
    *,
    which: Callable[[str], str | None] = shutil.which,
) -> TerminalCandidate | None:
    return next(iter_available_terminals(candidates, which=which), None)


def build_wrapped_command(executable: str, args: Sequence[str]) -> str:
    """Build the bash script run inside the terminal.

    The trailing ``read`` keeps the window open until the user presses Enter.
    """
    command = shlex.join([executable, *args])
    return "; ".join(
        [
            f"echo {shlex.quote(f'Running: {command}')}",
            command,
            "echo ''",
            f"echo {shlex.quote(CLOSE_PROMPT)}",
            "read",
        ]
    )
