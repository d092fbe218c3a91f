"""Package operation execution engine."""

from .models import (
    AUR_HELPERS,
    PACMAN,
    ExecutionMode,
    ExecutionStrategy,
    Operation,
    OperationKind,
    PackageInfo,
    ProgressRecord,
    TerminalCandidate,
)
from .orchestrator import PackageService, run_operation
from .privilege import resolve_privilege_command
from .progress import PACKAGE_PROGRESS_EVENT, ProgressReporter, QueueObserver
from .queries import detect_aur_helper, get_installed_packages, get_package_updates, search_packages
from .runner import OutputLine, ProcessExit, run_interactive, run_piped
from .strategy import select_strategy
from .terminals import TERMINAL_CANDIDATES, build_wrapped_command, find_terminal

__all__ = [
    "AUR_HELPERS",
    "build_wrapped_command",
    "detect_aur_helper",
    "ExecutionMode",
    "ExecutionStrategy",
    "find_terminal",
    "get_installed_packages",
    "get_package_updates",
    "Operation",
    "OperationKind",
    "OutputLine",
    "PACKAGE_PROGRESS_EVENT",
    "PACMAN",
    "PackageInfo",
    "PackageService",
    "ProcessExit",
    "ProgressRecord",
    "ProgressReporter",
    "QueueObserver",
    "resolve_privilege_command",
    "run_interactive",
    "run_operation",
    "run_piped",
    "search_packages",
    "select_strategy",
    "TERMINAL_CANDIDATES",
    "TerminalCandidate",
]
