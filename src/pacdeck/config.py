"""XDG config loading/saving."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from pacdeck.pkgops.terminals import terminal_names

DEFAULT_CONFIG_PATH = Path("~/.config/pacdeck/config.toml").expanduser()
DEFAULT_HELPER: Literal["pacman", "yay", "paru", "auto"] = "pacman"
DEFAULT_LOG_LEVEL = "INFO"
HELPER_ENV = "PACDECK_HELPER"

HelperChoice = Literal["pacman", "yay", "paru", "auto"]

_VALID_HELPERS = {"pacman", "yay", "paru", "auto"}
_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    default_helper: HelperChoice = DEFAULT_HELPER
    preferred_terminal: str = ""
    serialize_operations: bool = True
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("preferred_terminal")
    @classmethod
    def _validate_terminal(cls, value: str) -> str:
        name = value.strip()
        if name and name not in terminal_names():
            raise ValueError(f"Unknown terminal emulator: {value}")
        return name

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized == "WARNING":
            normalized = "WARN"
        if normalized not in _VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value}")
        return normalized


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    default_helper = raw.get("default_helper", cfg.default_helper)
    if isinstance(default_helper, str) and default_helper.strip() in _VALID_HELPERS:
        cfg.default_helper = cast(HelperChoice, default_helper.strip())
    env_helper = os.getenv(HELPER_ENV, "").strip()
    if env_helper in _VALID_HELPERS:
        cfg.default_helper = cast(HelperChoice, env_helper)

    preferred_terminal = raw.get("preferred_terminal", cfg.preferred_terminal)
    if isinstance(preferred_terminal, str) and preferred_terminal.strip() in {"", *terminal_names()}:
        cfg.preferred_terminal = preferred_terminal

    serialize_operations = raw.get("serialize_operations", cfg.serialize_operations)
    if isinstance(serialize_operations, bool):
        cfg.serialize_operations = serialize_operations

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str):
        with suppress(ValueError):
            cfg.log_level = log_level

    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _sanitize({})
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _sanitize({})
    if not isinstance(raw, dict):
        return _sanitize({})
    return _sanitize(raw)


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        f"default_helper = {_toml_scalar(config.default_helper)}",
        f"preferred_terminal = {_toml_scalar(config.preferred_terminal)}",
        f"serialize_operations = {_toml_scalar(config.serialize_operations)}",
        f"log_level = {_toml_scalar(config.log_level)}",
    ]
    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved
