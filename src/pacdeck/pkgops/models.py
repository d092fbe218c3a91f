"""Package operation domain models."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import TypedDict

PACMAN = "pacman"
AUR_HELPERS: tuple[str, ...] = ("yay", "paru")

# pacman package names; a leading dash would be parsed as an option.
PACKAGE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9@_+][A-Za-z0-9@._+-]*$")


class OperationKind(str, Enum):
    INSTALL = "install"
    REMOVE = "remove"
    UPDATE = "update"
    SYSTEM_UPDATE = "system update"

    @property
    def needs_package(self) -> bool:
        return self is not OperationKind.SYSTEM_UPDATE


class ExecutionMode(str, Enum):
    PIPED = "piped"
    INTERACTIVE = "interactive"


class Operation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: OperationKind
    target_package: str | None = None
    helper: str = PACMAN

    @field_validator("target_package", "helper", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def _check_target(self) -> Operation:
        if self.kind.needs_package:
            if not self.target_package:
                raise ValueError(f"A package name is required for {self.kind.value}")
            if not PACKAGE_NAME_PATTERN.match(self.target_package):
                raise ValueError(f"Invalid package name: {self.target_package}")
        elif self.target_package is not None:
            raise ValueError("System update does not take a package name")
        return self

    @property
    def label(self) -> str:
        return self.kind.value


class ProgressEventPayload(TypedDict):
    operation: str
    package_name: str | None
    progress: int
    status: str
    output: list[str]
    running: bool


class ProgressRecord(BaseModel):
    """Point-in-time snapshot of one operation, serialized for the UI bridge."""

    model_config = ConfigDict(validate_assignment=True)

    operation_kind: OperationKind = Field(serialization_alias="operation")
    target_package: str | None = Field(default=None, serialization_alias="package_name")
    progress: int = Field(default=0, ge=0, le=100)
    status: str = ""
    output_lines: list[str] = Field(default_factory=list, serialization_alias="output")
    running: bool = True

    def to_event(self) -> ProgressEventPayload:
        return cast(ProgressEventPayload, self.model_dump(mode="json", by_alias=True))


@dataclass(frozen=True)
class ExecutionStrategy:
    executable: str
    args: tuple[str, ...]
    mode: ExecutionMode

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]


@dataclass(frozen=True)
class TerminalCandidate:
    name: str
    exec_args: tuple[str, ...]


class PackageInfo(BaseModel):
    name: str
    version: str = ""
    description: str = ""
    installed: bool = False
    size: str | None = None
    repo: str | None = None
    updatable: bool | None = None
    new_version: str | None = None
