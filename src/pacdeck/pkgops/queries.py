"""Read-only package queries: helper detection, installed, search, updates."""

from __future__ import annotations

import logging as py_logging
import shutil
import subprocess
from collections.abc import Callable

from pacdeck.errors import ExitCode, PacdeckError, SpawnError
from pacdeck.logging import command_for_log, truncate_log
from pacdeck.pkgops.models import AUR_HELPERS, PACMAN, PackageInfo

logger = py_logging.getLogger(__name__)

SubprocessRunner = Callable[..., subprocess.CompletedProcess[str]]

_INFO_FIELDS = {
    "Name": "name",
    "Version": "version",
    "Description": "description",
    "Installed Size": "size",
    "Repository": "repo",
}


def detect_aur_helper(*, which: Callable[[str], str | None] = shutil.which) -> str:
    for helper in AUR_HELPERS:
        if which(helper):
            return helper
    return PACMAN


def query_command(helper: str) -> str:
    """Queries run unprivileged, through the AUR helper when one is selected."""
    name = helper.strip()
    return name if name in AUR_HELPERS else PACMAN


def _run_query(argv: list[str], runner: SubprocessRunner) -> subprocess.CompletedProcess[str]:
    logger.debug("package-query command=%s", command_for_log(argv))
    try:
        return runner(argv, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise SpawnError(
            f"Failed to run {argv[0]}: {exc}",
            hint=f"Make sure {argv[0]} is installed and on PATH.",
        ) from exc


def parse_installed_packages(raw: str) -> list[PackageInfo]:
    """Parse ``pacman -Qi`` output into one record per ``Name`` block."""
    packages: list[PackageInfo] = []
    current: dict[str, str] | None = None
    for line in raw.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        field = _INFO_FIELDS.get(key.strip())
        if field is None or line[:1].isspace():
            continue
        if field == "name":
            if current is not None:
                packages.append(PackageInfo(installed=True, **current))
            current = {"name": value.strip()}
        elif current is not None:
            current[field] = value.strip()
    if current is not None:
        packages.append(PackageInfo(installed=True, **current))
    return packages


def parse_search_results(raw: str) -> list[PackageInfo]:
    """Parse ``-Ss`` output: ``repo/name version [installed]`` plus an indented description."""
    lines = raw.splitlines()
    packages: list[PackageInfo] = []
    index = 0
    while index < len(lines):
        line = lines[index]
        parts = line.split()
        if "/" in line and len(parts) >= 2 and not line[:1].isspace():
            repo, sep, name = parts[0].partition("/")
            if sep and repo and name and "/" not in name:
                description = lines[index + 1].strip() if index + 1 < len(lines) else ""
                packages.append(
                    PackageInfo(
                        name=name,
                        version=parts[1],
                        description=description,
                        installed="[installed" in line,
                        repo=repo,
                    )
                )
                index += 2
                continue
        index += 1
    return packages


def parse_updates(raw: str) -> list[PackageInfo]:
    """Parse ``-Qu`` output lines shaped ``name current -> new``."""
    packages: list[PackageInfo] = []
    for line in raw.splitlines():
        parts = line.split()
        if len(parts) < 4 or parts[2] != "->":
            continue
        packages.append(
            PackageInfo(
                name=parts[0],
                version=parts[1],
                installed=True,
                updatable=True,
                new_version=parts[3],
            )
        )
    return packages


def get_installed_packages(*, runner: SubprocessRunner = subprocess.run) -> list[PackageInfo]:
    result = _run_query([PACMAN, "-Qi"], runner)
    if result.returncode != 0:
        logger.error("package-query installed-failed code=%s stderr=%s", result.returncode, truncate_log(result.stderr or ""))
        raise PacdeckError(
            "Failed to get installed packages",
            code=ExitCode.RUNTIME_ERROR,
            hint=(result.stderr or "").strip() or "Check the pacman database.",
        )
    return parse_installed_packages(result.stdout)


def search_packages(
    query: str,
    helper: str = PACMAN,
    *,
    runner: SubprocessRunner = subprocess.run,
) -> list[PackageInfo]:
    term = query.strip()
    if not term:
        raise PacdeckError(
            "Search query is required.",
            code=ExitCode.VALIDATION_ERROR,
            hint="Type part of a package name.",
        )
    # A leading dash would reach pacman as an option.
    if term.startswith("-"):
        raise PacdeckError(
            f"Invalid search query: {term}",
            code=ExitCode.VALIDATION_ERROR,
            hint="Search terms cannot start with '-'.",
        )
    command = query_command(helper)
    result = _run_query([command, "-Ss", term], runner)
    if result.returncode != 0:
        # pacman -Ss exits 1 when nothing matches and prints no error.
        if not (result.stderr or "").strip() and not (result.stdout or "").strip():
            return []
        raise PacdeckError(
            f"Failed to search packages with {command}",
            code=ExitCode.RUNTIME_ERROR,
            hint=(result.stderr or "").strip(),
        )
    return parse_search_results(result.stdout)


def get_package_updates(
    helper: str = PACMAN,
    *,
    runner: SubprocessRunner = subprocess.run,
) -> list[PackageInfo]:
    command = query_command(helper)
    result = _run_query([command, "-Qu"], runner)
    # -Qu exits non-zero when there is nothing to upgrade.
    if result.returncode != 0:
        logger.debug("package-query updates-none code=%s", result.returncode)
    return parse_updates(result.stdout or "")
