"""Subprocess execution for package operations.

Two strategies are supported. ``run_piped`` captures stdout/stderr through
pipes and exposes them as a lazy stream of events. ``run_interactive`` hands
a shell script to a terminal emulator and blocks until that window closes.
"""

from __future__ import annotations

import logging as py_logging
import subprocess
import threading
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import IO, Literal, Union

from pacdeck.errors import SpawnError
from pacdeck.logging import command_for_log
from pacdeck.pkgops.models import TerminalCandidate

logger = py_logging.getLogger(__name__)

STDERR_PREFIX = "ERROR: "

Popen = Callable[..., "subprocess.Popen[str]"]


@dataclass(frozen=True)
class OutputLine:
    text: str
    stream: Literal["stdout", "stderr"] = "stdout"

    @property
    def display(self) -> str:
        if self.stream == "stderr":
            return f"{STDERR_PREFIX}{self.text}"
        return self.text


@dataclass(frozen=True)
class ProcessExit:
    returncode: int | None

    @property
    def success(self) -> bool:
        return self.returncode == 0


StreamEvent = Union[OutputLine, ProcessExit]


def describe_exit_code(returncode: int | None) -> str:
    if returncode is None:
        return "unknown"
    if returncode < 0:
        return f"unknown (signal {-returncode})"
    return str(returncode)


def _strip_newline(line: str) -> str:
    return line.rstrip("\r\n")


def _drain(stream: IO[str] | None, sink: list[str]) -> None:
    if stream is None:
        return
    for line in stream:
        sink.append(_strip_newline(line))


def run_piped(
    executable: str,
    args: Sequence[str],
    *,
    popen: Popen = subprocess.Popen,
) -> Iterator[StreamEvent]:
    """Spawn the command now and return a single-pass event stream.

    stdout lines are yielded as they arrive. stderr is drained concurrently so
    the child never blocks on a full pipe, but its lines are only yielded after
    stdout reaches EOF. The stream ends with one ``ProcessExit``.
    """
    argv = [executable, *args]
    logger.info("package-run piped-start command=%s", command_for_log(argv))
    try:
        process = popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except OSError as exc:
        logger.error("package-run spawn-failed command=%s error=%s", executable, exc)
        raise SpawnError(
            f"Failed to start {executable}: {exc}",
            hint=f"Make sure {executable} is installed and on PATH.",
        ) from exc
    return _stream_events(process)


def _stream_events(process: subprocess.Popen[str]) -> Iterator[StreamEvent]:
    stderr_lines: list[str] = []
    stderr_reader = threading.Thread(
        target=_drain,
        args=(process.stderr, stderr_lines),
        name="pacdeck-stderr",
        daemon=True,
    )
    stderr_reader.start()
    try:
        if process.stdout is not None:
            for line in process.stdout:
                yield OutputLine(_strip_newline(line))
        stderr_reader.join()
        for line in stderr_lines:
            yield OutputLine(line, stream="stderr")
        returncode = process.wait()
    finally:
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                stream.close()
    logger.info("package-run piped-exit code=%s", describe_exit_code(returncode))
    yield ProcessExit(returncode)


def run_interactive(
    terminal: TerminalCandidate,
    wrapped_command: str,
    *,
    popen: Popen = subprocess.Popen,
    on_started: Callable[[], None] | None = None,
) -> int | None:
    """Run ``wrapped_command`` in ``terminal`` and wait for the window to close.

    ``on_started`` fires once the emulator process exists, before blocking.

    The returned status belongs to the terminal emulator, not necessarily to
    the wrapped command.
    """
    argv = [terminal.name, *terminal.exec_args, wrapped_command]
    logger.info("package-run terminal-start terminal=%s command=%s", terminal.name, command_for_log(argv))
    try:
        process = popen(argv)
    except OSError as exc:
        raise SpawnError(
            f"Failed to start {terminal.name} terminal: {exc}",
            hint="Try another terminal emulator.",
        ) from exc
    if on_started is not None:
        on_started()
    returncode = process.wait()
    logger.info(
        "package-run terminal-exit terminal=%s code=%s",
        terminal.name,
        describe_exit_code(returncode),
    )
    return returncode
