from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pacdeck.pkgops.models import ExecutionMode, OperationKind
from pacdeck.pkgops.strategy import is_aur_helper, select_strategy


def _which_for(*available: str):
    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in available else None

    return which


def test_remove_never_uses_aur_helper() -> None:
    strategy = select_strategy(OperationKind.REMOVE, "yay", "firefox", which=_which_for("pkexec"))

    assert strategy.mode is ExecutionMode.PIPED
    assert strategy.argv == ["pkexec", "pacman", "-R", "--noconfirm", "firefox"]


def test_system_update_with_paru_runs_in_terminal() -> None:
    strategy = select_strategy(OperationKind.SYSTEM_UPDATE, "paru", which=_which_for())

    assert strategy.mode is ExecutionMode.INTERACTIVE
    assert strategy.argv == ["paru", "-Syu", "--noconfirm"]


@pytest.mark.parametrize("helper", ["pacman", "apt", "", "YAY"])
def test_install_with_base_or_unknown_helper_is_privileged_pipe(helper: str) -> None:
    strategy = select_strategy(OperationKind.INSTALL, helper, "htop", which=_which_for())

    assert strategy.mode is ExecutionMode.PIPED
    assert strategy.argv == ["sudo", "pacman", "-S", "--noconfirm", "htop"]


def test_update_with_yay_runs_helper_in_terminal() -> None:
    strategy = select_strategy(OperationKind.UPDATE, " yay ", "neovim-git", which=_which_for("pkexec"))

    assert strategy.mode is ExecutionMode.INTERACTIVE
    assert strategy.argv == ["yay", "-S", "--noconfirm", "neovim-git"]


def test_system_update_with_pacman_uses_privilege_prefix() -> None:
    strategy = select_strategy(OperationKind.SYSTEM_UPDATE, "pacman", which=_which_for("pkexec"))

    assert strategy.argv == ["pkexec", "pacman", "-Syu", "--noconfirm"]


def test_package_required_for_package_operations() -> None:
    with pytest.raises(ValueError):
        select_strategy(OperationKind.INSTALL, "pacman", None, which=_which_for())


def test_is_aur_helper_matches_known_helpers() -> None:
    assert is_aur_helper("yay")
    assert is_aur_helper("paru")
    assert not is_aur_helper("pacman")
    assert not is_aur_helper("trizen")


@given(st.text(max_size=12))
def test_remove_is_piped_for_any_helper(helper: str) -> None:
    strategy = select_strategy(OperationKind.REMOVE, helper, "vim", which=_which_for())

    assert strategy.mode is ExecutionMode.PIPED
    assert strategy.args == ("pacman", "-R", "--noconfirm", "vim")
