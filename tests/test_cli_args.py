from __future__ import annotations

import io
import json
from contextlib import redirect_stderr
from pathlib import Path

import pytest

from pacdeck import cli
from pacdeck.config import AppConfig
from pacdeck.errors import ExitCode, NoTerminalAvailable
from pacdeck.pkgops.models import OperationKind, ProgressRecord
from pacdeck.pkgops.progress import ProgressReporter


class _FakeService:
    instances: list[_FakeService] = []

    def __init__(self, config: AppConfig, reporter: ProgressReporter) -> None:
        self.config = config
        self.reporter = reporter
        self.calls: list[tuple[str, ...]] = []
        _FakeService.instances.append(self)

    def resolve_helper(self, helper: str | None) -> str:
        return helper or self.config.default_helper

    def install(self, package: str, helper: str | None = None) -> None:
        self.calls.append(("install", package, helper or ""))
        self.reporter.publish(
            ProgressRecord(
                operation_kind=OperationKind.INSTALL,
                target_package=package,
                progress=100,
                status="install completed successfully",
                output_lines=["done"],
                running=False,
            )
        )

    def remove(self, package: str, helper: str | None = None) -> None:
        self.calls.append(("remove", package, helper or ""))

    def update(self, package: str, helper: str | None = None) -> None:
        self.calls.append(("update", package, helper or ""))

    def system_update(self, helper: str | None = None) -> None:
        raise NoTerminalAvailable(
            "No suitable terminal emulator found for system update",
            hint="Install one of: kitty, xterm",
        )


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PACDECK_HELPER", raising=False)
    _FakeService.instances.clear()


def _base_args(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "config.toml"), "--log-file", str(tmp_path / "pacdeck.log")]


def test_cli_help_lists_operations() -> None:
    help_text = cli.build_parser().format_help()

    for name in ("install", "remove", "update", "system-update", "detect-helper", "search", "updates"):
        assert name in help_text
    assert "--log-level" in help_text


def test_missing_command_returns_invalid_args() -> None:
    with redirect_stderr(io.StringIO()):
        assert cli.main([]) == int(ExitCode.INVALID_ARGS)


def test_invalid_log_level_is_rejected(tmp_path: Path) -> None:
    stream = io.StringIO()
    with redirect_stderr(stream):
        code = cli.main(["--log-level", "TRACE", *_base_args(tmp_path), "detect-helper"])

    assert code == 2
    assert "--log-level must be one of" in stream.getvalue()


def test_install_prints_progress_events_as_json_lines(tmp_path: Path) -> None:
    out = io.StringIO()

    code = cli.main(
        [*_base_args(tmp_path), "install", "firefox", "--helper", "yay"],
        stream=out,
        service_factory=_FakeService,
    )

    assert code == 0
    assert _FakeService.instances[0].calls == [("install", "firefox", "yay")]
    event = json.loads(out.getvalue().splitlines()[0])
    assert event == {
        "event": "package-progress",
        "payload": {
            "operation": "install",
            "package_name": "firefox",
            "progress": 100,
            "status": "install completed successfully",
            "output": ["done"],
            "running": False,
        },
    }


def test_remove_and_update_are_dispatched(tmp_path: Path) -> None:
    assert cli.main([*_base_args(tmp_path), "remove", "vim"], stream=io.StringIO(), service_factory=_FakeService) == 0
    assert cli.main([*_base_args(tmp_path), "update", "git"], stream=io.StringIO(), service_factory=_FakeService) == 0

    assert [service.calls for service in _FakeService.instances] == [
        [("remove", "vim", "")],
        [("update", "git", "")],
    ]


def test_operation_error_is_reported_with_its_exit_code(tmp_path: Path) -> None:
    stream = io.StringIO()
    with redirect_stderr(stream):
        code = cli.main(
            [*_base_args(tmp_path), "system-update", "--helper", "paru"],
            stream=io.StringIO(),
            service_factory=_FakeService,
        )

    assert code == int(ExitCode.NO_TERMINAL)
    assert "No suitable terminal emulator found for system update" in stream.getvalue()
    assert "Install one of: kitty, xterm" in stream.getvalue()


def test_detect_helper_prints_json_string(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "detect_aur_helper", lambda: "paru")
    out = io.StringIO()

    assert cli.main([*_base_args(tmp_path), "detect-helper"], stream=out) == 0
    assert json.loads(out.getvalue()) == "paru"


def test_unexpected_exception_maps_to_runtime_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken() -> list[object]:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "get_installed_packages", broken)
    stream = io.StringIO()
    with redirect_stderr(stream):
        code = cli.main([*_base_args(tmp_path), "installed"], stream=io.StringIO())

    assert code == int(ExitCode.RUNTIME_ERROR)
    assert "Unexpected runtime failure" in stream.getvalue()


def test_search_uses_configured_default_helper(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[tuple[str, str]] = []

    def fake_search(query: str, helper: str) -> list[object]:
        seen.append((query, helper))
        return []

    (tmp_path / "config.toml").write_text('default_helper = "yay"\n', encoding="utf-8")
    monkeypatch.setattr(cli, "search_packages", fake_search)
    out = io.StringIO()

    assert cli.main([*_base_args(tmp_path), "search", "neovim"], stream=out, service_factory=_FakeService) == 0
    assert seen == [("neovim", "yay")]
    assert json.loads(out.getvalue()) == []
