"""Privilege escalation command resolution."""

from __future__ import annotations

import logging as py_logging
import shutil
from collections.abc import Callable

logger = py_logging.getLogger(__name__)

GRAPHICAL_PRIVILEGE_COMMAND = "pkexec"
FALLBACK_PRIVILEGE_COMMAND = "sudo"


def resolve_privilege_command(*, which: Callable[[str], str | None] = shutil.which) -> str:
    """Return pkexec when installed (graphical auth prompt), otherwise sudo.

    Probed on every call; availability can change between operations.
    """
    if which(GRAPHICAL_PRIVILEGE_COMMAND):
        return GRAPHICAL_PRIVILEGE_COMMAND
    logger.debug(
        "privilege-resolve fallback=%s reason=%s-missing",
        FALLBACK_PRIVILEGE_COMMAND,
        GRAPHICAL_PRIVILEGE_COMMAND,
    )
    return FALLBACK_PRIVILEGE_COMMAND
