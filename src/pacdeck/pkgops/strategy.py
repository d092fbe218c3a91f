"""Execution strategy selection for package operations."""

from __future__ import annotations

import shutil
from collections.abc import Callable

from pacdeck.pkgops.models import (
    AUR_HELPERS,
    PACMAN,
    ExecutionMode,
    ExecutionStrategy,
    OperationKind,
)
from pacdeck.pkgops.privilege import resolve_privilege_command

_NO_CONFIRM = "--noconfirm"

# Removal always goes through pacman, even when an AUR helper is selected.
_INTERACTIVE_KINDS = frozenset({OperationKind.INSTALL, OperationKind.UPDATE, OperationKind.SYSTEM_UPDATE})


def is_aur_helper(helper: str) -> bool:
    return helper.strip() in AUR_HELPERS


def package_manager_args(kind: OperationKind, package: str | None) -> tuple[str, ...]:
    if kind is OperationKind.SYSTEM_UPDATE:
        return ("-Syu", _NO_CONFIRM)
    if package is None:
        raise ValueError(f"A package name is required for {kind.value}")
    if kind is OperationKind.REMOVE:
        return ("-R", _NO_CONFIRM, package)
    return ("-S", _NO_CONFIRM, package)


def select_strategy(
    kind: OperationKind,
    helper: str,
    package: str | None = None,
    *,
    which: Callable[[str], str | None] = shutil.which,
) -> ExecutionStrategy:
    args = package_manager_args(kind, package)
    if is_aur_helper(helper) and kind in _INTERACTIVE_KINDS:
        return ExecutionStrategy(
            executable=helper.strip(),
            args=args,
            mode=ExecutionMode.INTERACTIVE,
        )
    return ExecutionStrategy(
        executable=resolve_privilege_command(which=which),
        args=(PACMAN, *args),
        mode=ExecutionMode.PIPED,
    )
