"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    SPAWN_ERROR = 5
    NO_TERMINAL = 6
    PROCESS_FAILURE = 7
    VALIDATION_ERROR = 8


@dataclass
class PacdeckError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class SpawnError(PacdeckError):
    """An executable could not be launched at all."""

    code: ExitCode = ExitCode.SPAWN_ERROR


@dataclass
class NoTerminalAvailable(PacdeckError):
    """Every terminal emulator candidate was missing or failed to start."""

    code: ExitCode = ExitCode.NO_TERMINAL


@dataclass
class ProcessFailure(PacdeckError):
    """The wrapped command ran and exited non-zero."""

    code: ExitCode = ExitCode.PROCESS_FAILURE
    returncode: int | None = None


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
