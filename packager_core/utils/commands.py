"""Blocking execution of external tools with captured output."""
from __future__ import annotations

import logging
import subprocess
from os import PathLike
from pathlib import Path
from typing import Collection, Sequence, Union

from packager_core.errors import ToolInvocationFailure

_LOGGER = logging.getLogger(__name__)

Argument = Union[str, int, "PathLike[str]"]


def _flatten(args: tuple[Argument | list[Argument] | tuple[Argument, ...], ...]) -> list[str]:
    result: list[str] = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            result.extend(str(item) for item in arg)
        else:
            result.append(str(arg))
    return result


def redact(command: Sequence[str], flags: Collection[str]) -> list[str]:
    """Copy of ``command`` with the value following each of ``flags`` masked."""

    redacted: list[str] = []
    hide_next = False
    for part in command:
        redacted.append("***" if hide_next else part)
        hide_next = part in flags
    return redacted


def execute(
    tool: Argument,
    *args: Argument | list[Argument],
    cwd: Path | None = None,
    redact_flags: Collection[str] = (),
) -> str:
    """Run ``tool`` with ``args`` and return its stdout (stderr appended).

    Values following any of ``redact_flags`` are masked in logs and errors.
    Raises :class:`ToolInvocationFailure` when the process cannot be started or
    exits with a non-zero code.
    """

    command = [str(tool), *_flatten(args)]
    shown = redact(command, redact_flags)
    _LOGGER.info("Executing: %s", " ".join(shown))
    try:
        result = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            cwd=str(cwd) if cwd is not None else None,
        )
    except OSError as exc:
        raise ToolInvocationFailure(shown, None, reason=f"cannot launch: {exc}") from exc

    output = result.stdout or ""
    if result.stderr:
        output = f"{output}{result.stderr}" if output else result.stderr
    if result.returncode != 0:
        raise ToolInvocationFailure(shown, result.returncode, output)
    if output.strip():
        _LOGGER.debug("%s output:\n%s", command[0], output.rstrip())
    return output


__all__ = ["execute", "redact"]
