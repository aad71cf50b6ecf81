"""Exception hierarchy shared by the packaging pipeline."""
from __future__ import annotations

from typing import Sequence


class PackagerError(RuntimeError):
    """Base class for every failure raised by :mod:`packager_core`."""


class ConfigurationError(PackagerError):
    """Invalid or contradictory packaging settings (raised before touching the disk)."""


class PackagerStateError(PackagerError):
    """A write-once field of the build context was assigned twice."""


class ToolInvocationFailure(PackagerError):
    """An external tool could not be launched or exited with a non-zero code."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None,
        output: str = "",
        *,
        reason: str | None = None,
    ) -> None:
        self.command = [str(part) for part in command]
        self.returncode = returncode
        self.output = output
        display = " ".join(self.command)
        if reason is None:
            reason = f"exit code {returncode}"
        message = f"Command failed ({reason}): {display}"
        details = output.strip()
        if details:
            message = f"{message}\n{details}"
        super().__init__(message)


class GenerationFailure(PackagerError):
    """An artifact generator could not produce its output."""


class PostconditionFailure(GenerationFailure):
    """A tool reported success but the expected output file is missing."""


__all__ = [
    "PackagerError",
    "ConfigurationError",
    "PackagerStateError",
    "ToolInvocationFailure",
    "GenerationFailure",
    "PostconditionFailure",
]
