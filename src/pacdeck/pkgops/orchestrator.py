"""End-to-end package operation orchestration with live progress."""

from __future__ import annotations

import logging as py_logging
import shutil
import subprocess
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING

from pydantic import ValidationError

from pacdeck.errors import ExitCode, NoTerminalAvailable, PacdeckError, ProcessFailure, SpawnError
from pacdeck.pkgops.models import (
    PACMAN,
    ExecutionMode,
    ExecutionStrategy,
    Operation,
    OperationKind,
    TerminalCandidate,
)
from pacdeck.pkgops.progress import OperationProgress, ProgressReporter
from pacdeck.pkgops.queries import detect_aur_helper
from pacdeck.pkgops.runner import (
    OutputLine,
    Popen,
    ProcessExit,
    describe_exit_code,
    run_interactive,
    run_piped,
)
from pacdeck.pkgops.strategy import select_strategy
from pacdeck.pkgops.terminals import (
    TERMINAL_CANDIDATES,
    build_wrapped_command,
    iter_available_terminals,
    prioritize_terminal,
    terminal_names,
)

if TYPE_CHECKING:
    from pacdeck.config import AppConfig

logger = py_logging.getLogger(__name__)

Which = Callable[[str], str | None]


def _failure_message(label: str, returncode: int | None) -> str:
    return f"{label} failed with exit code: {describe_exit_code(returncode)}"


def run_operation(
    operation: Operation,
    reporter: ProgressReporter,
    *,
    which: Which = shutil.which,
    popen: Popen = subprocess.Popen,
    terminals: Sequence[TerminalCandidate] = TERMINAL_CANDIDATES,
) -> None:
    """Run one package operation to a terminal outcome.

    Returns on success. Raises ``ProcessFailure`` on a non-zero exit,
    ``NoTerminalAvailable`` when no terminal could be opened, and
    ``SpawnError`` when a piped command never started.
    """
    tracker = OperationProgress(operation, reporter)
    logger.info(
        "package-op start operation=%s package=%s helper=%s",
        operation.label,
        operation.target_package or "-",
        operation.helper,
    )
    tracker.starting()
    strategy = select_strategy(
        operation.kind,
        operation.helper,
        operation.target_package,
        which=which,
    )
    logger.debug(
        "package-op strategy operation=%s mode=%s executable=%s",
        operation.label,
        strategy.mode.value,
        strategy.executable,
    )
    if strategy.mode is ExecutionMode.INTERACTIVE:
        _run_in_terminal(tracker, strategy, which=which, popen=popen, terminals=terminals)
    else:
        _run_with_pipes(tracker, strategy, popen=popen)
    logger.info("package-op success operation=%s package=%s", operation.label, operation.target_package or "-")


def _run_with_pipes(tracker: OperationProgress, strategy: ExecutionStrategy, *, popen: Popen) -> None:
    label = tracker.label
    try:
        events = run_piped(strategy.executable, strategy.args, popen=popen)
    except SpawnError as exc:
        raise SpawnError(f"{label}: {exc.message}", hint=exc.hint) from exc

    outcome = ProcessExit(None)
    for event in events:
        if isinstance(event, OutputLine):
            if event.stream == "stdout":
                tracker.line(event.display)
            else:
                tracker.append(event.display)
        else:
            outcome = event

    if outcome.success:
        tracker.completed(f"{label} completed successfully")
        return
    tracker.completed(f"{label} failed")
    logger.error("package-op failed operation=%s code=%s", label, describe_exit_code(outcome.returncode))
    raise ProcessFailure(
        _failure_message(label, outcome.returncode),
        hint="Inspect the operation output for details.",
        returncode=outcome.returncode,
    )


def _run_in_terminal(
    tracker: OperationProgress,
    strategy: ExecutionStrategy,
    *,
    which: Which,
    popen: Popen,
    terminals: Sequence[TerminalCandidate],
) -> None:
    label = tracker.label
    wrapped = build_wrapped_command(strategy.executable, strategy.args)
    for terminal in iter_available_terminals(terminals, which=which):
        try:
            returncode = run_interactive(
                terminal,
                wrapped,
                popen=popen,
                on_started=lambda name=terminal.name: tracker.in_terminal(name),
            )
        except SpawnError as exc:
            logger.warning("package-op terminal-spawn-failed terminal=%s error=%s", terminal.name, exc.message)
            continue

        tracker.append(f"Terminal command completed with exit code: {describe_exit_code(returncode)}")
        if returncode == 0:
            tracker.completed(f"{label} completed")
            return
        tracker.completed(f"{label} may have failed - check terminal output")
        logger.error(
            "package-op terminal-failed operation=%s terminal=%s code=%s",
            label,
            terminal.name,
            describe_exit_code(returncode),
        )
        raise ProcessFailure(
            _failure_message(label, returncode),
            hint="Check the terminal output for details.",
            returncode=returncode,
        )

    names = ", ".join(terminal_names(terminals))
    tracker.no_terminal(
        f"No compatible terminal emulator found. Please install one of: {names}"
    )
    logger.error("package-op no-terminal operation=%s candidates=%s", label, names)
    raise NoTerminalAvailable(
        f"No suitable terminal emulator found for {label}",
        hint=f"Install one of: {names}",
    )


class PackageService:
    """Inbound calls for the UI bridge, one method per operation kind.

    Operations are serialized through a lock unless the config disables it;
    pacman holds a database lock and concurrent runs would collide.
    """

    def __init__(
        self,
        config: AppConfig,
        reporter: ProgressReporter,
        *,
        which: Which = shutil.which,
        popen: Popen = subprocess.Popen,
        terminals: Sequence[TerminalCandidate] = TERMINAL_CANDIDATES,
    ) -> None:
        self.config = config
        self.reporter = reporter
        self._which = which
        self._popen = popen
        self._terminals = tuple(terminals)
        self._lock = threading.Lock()

    def resolve_helper(self, helper: str | None) -> str:
        name = (helper if helper is not None else self.config.default_helper).strip()
        if name == "auto":
            return detect_aur_helper(which=self._which)
        return name or PACMAN

    @contextmanager
    def _exclusive(self, operation: Operation) -> Iterator[None]:
        if not self.config.serialize_operations:
            yield
            return
        if self._lock.locked():
            logger.info("package-op waiting operation=%s reason=another-operation-running", operation.label)
        with self._lock:
            yield

    def run(self, operation: Operation) -> None:
        terminals = prioritize_terminal(self._terminals, self.config.preferred_terminal)
        with self._exclusive(operation):
            run_operation(
                operation,
                self.reporter,
                which=self._which,
                popen=self._popen,
                terminals=terminals,
            )

    def _operation(self, kind: OperationKind, package: str | None, helper: str | None) -> Operation:
        try:
            return Operation(kind=kind, target_package=package, helper=self.resolve_helper(helper))
        except ValidationError as exc:
            raise PacdeckError(
                f"Invalid {kind.value} request.",
                code=ExitCode.VALIDATION_ERROR,
                hint="; ".join(error["msg"] for error in exc.errors()),
            ) from exc

    def install(self, package: str, helper: str | None = None) -> None:
        self.run(self._operation(OperationKind.INSTALL, package, helper))

    def remove(self, package: str, helper: str | None = None) -> None:
        self.run(self._operation(OperationKind.REMOVE, package, helper))

    def update(self, package: str, helper: str | None = None) -> None:
        self.run(self._operation(OperationKind.UPDATE, package, helper))

    def system_update(self, helper: str | None = None) -> None:
        self.run(self._operation(OperationKind.SYSTEM_UPDATE, None, helper))
