"""Command line bridge: runs package operations and prints JSON events."""

from __future__ import annotations

import argparse
import json
import logging as py_logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TextIO

from .config import AppConfig, load_config
from .errors import ExitCode, PacdeckError, user_facing_error
from .logging import configure_logging, default_log_path
from .pkgops.models import PackageInfo, ProgressRecord
from .pkgops.orchestrator import PackageService
from .pkgops.progress import PACKAGE_PROGRESS_EVENT, ProgressReporter
from .pkgops.queries import detect_aur_helper, get_installed_packages, get_package_updates, search_packages

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

ServiceFactory = Callable[[AppConfig, ProgressReporter], PackageService]


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pacdeck")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    commands = parser.add_subparsers(dest="command", required=True)

    for name in ("install", "remove", "update"):
        command = commands.add_parser(name, help=f"{name} a package")
        command.add_argument("package")
        command.add_argument("--helper", default=None, help="pacman, yay, paru or auto")

    system_update = commands.add_parser("system-update", help="upgrade the whole system")
    system_update.add_argument("--helper", default=None, help="pacman, yay, paru or auto")

    commands.add_parser("detect-helper", help="print the preferred AUR helper")
    commands.add_parser("installed", help="list installed packages")

    search = commands.add_parser("search", help="search the repositories")
    search.add_argument("query")
    search.add_argument("--helper", default=None)

    updates = commands.add_parser("updates", help="list pending updates")
    updates.add_argument("--helper", default=None)
    return parser


def json_line_observer(stream: TextIO) -> Callable[[ProgressRecord], None]:
    def emit(record: ProgressRecord) -> None:
        stream.write(json.dumps({"event": PACKAGE_PROGRESS_EVENT, "payload": record.to_event()}) + "\n")
        stream.flush()

    return emit


def _print_packages(packages: list[PackageInfo], stream: TextIO) -> None:
    stream.write(json.dumps([package.model_dump(mode="json") for package in packages]) + "\n")


def run_command(
    namespace: argparse.Namespace,
    config: AppConfig,
    *,
    stream: TextIO,
    service_factory: ServiceFactory = PackageService,
) -> int:
    command = namespace.command
    if command == "detect-helper":
        stream.write(json.dumps(detect_aur_helper()) + "\n")
        return int(ExitCode.SUCCESS)
    if command == "installed":
        _print_packages(get_installed_packages(), stream)
        return int(ExitCode.SUCCESS)

    service = service_factory(config, ProgressReporter(json_line_observer(stream)))
    helper = namespace.helper
    if command == "search":
        _print_packages(search_packages(namespace.query, service.resolve_helper(helper)), stream)
    elif command == "updates":
        _print_packages(get_package_updates(service.resolve_helper(helper)), stream)
    elif command == "install":
        service.install(namespace.package, helper)
    elif command == "remove":
        service.remove(namespace.package, helper)
    elif command == "update":
        service.update(namespace.package, helper)
    elif command == "system-update":
        service.system_update(helper)
    return int(ExitCode.SUCCESS)


def main(
    argv: Sequence[str] | None = None,
    *,
    stream: TextIO | None = None,
    service_factory: ServiceFactory = PackageService,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    config = load_config(namespace.config)
    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level or config.log_level, log_file=log_path)

    try:
        logger.debug("Starting command=%s", namespace.command)
        return run_command(
            namespace,
            config,
            stream=stream or sys.stdout,
            service_factory=service_factory,
        )
    except PacdeckError as exc:
        logger.error(
            "Handled PacdeckError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            hint = f"Inspect logs: {log_path}"
            print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
