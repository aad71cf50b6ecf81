"""Fake external tools and JDK layouts used by the packaging tests."""
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any, Callable

ToolHandler = Callable[[list[str]], "str | subprocess.CompletedProcess[str] | None"]


class FakeTools:
    """Stands in for ``subprocess.run``; records every command line."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._handlers: dict[str, ToolHandler] = {}
        self._failures: dict[str, tuple[int, str]] = {}

    def on(self, tool: str, handler: ToolHandler) -> None:
        self._handlers[tool] = handler

    def fail(self, tool: str, returncode: int = 1, output: str = "boom") -> None:
        self._failures[tool] = (returncode, output)

    def names(self) -> list[str]:
        return [self._name(call) for call in self.calls]

    def calls_to(self, tool: str) -> list[list[str]]:
        return [call for call in self.calls if self._name(call) == tool]

    @staticmethod
    def _name(command: list[str]) -> str:
        return Path(command[0]).name.removesuffix(".exe")

    def __call__(self, command: list[str], **_kwargs: Any) -> subprocess.CompletedProcess[str]:
        command = [str(part) for part in command]
        self.calls.append(command)
        name = self._name(command)
        if name in self._failures:
            returncode, output = self._failures[name]
            return subprocess.CompletedProcess(command, returncode, stdout="", stderr=output)
        handler = self._handlers.get(name)
        result = handler(command) if handler is not None else None
        if isinstance(result, subprocess.CompletedProcess):
            return result
        return subprocess.CompletedProcess(command, 0, stdout=result or "", stderr="")


def option_value(command: list[str], option: str) -> str:
    return command[command.index(option) + 1]


def touch_option(option: str, content: bytes = b"artifact") -> ToolHandler:
    """Handler creating the file named by ``option`` (e.g. ``-out``)."""

    def handler(command: list[str]) -> None:
        target = Path(option_value(command, option))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    return handler


def touch_last(content: bytes = b"artifact") -> ToolHandler:
    """Handler creating the file named by the last argument."""

    def handler(command: list[str]) -> None:
        target = Path(command[-1])
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    return handler


def make_jdk(root: Path, version: str = "17.0.2") -> Path:
    (root / "bin").mkdir(parents=True, exist_ok=True)
    (root / "jmods").mkdir(exist_ok=True)
    (root / "release").write_text(f'JAVA_VERSION="{version}"\nIMPLEMENTOR="Test"\n', encoding="utf-8")
    return root


def fake_jlink(command: list[str]) -> None:
    output = Path(option_value(command, "--output"))
    (output / "bin").mkdir(parents=True)
    (output / "bin" / "java").write_text("#!/bin/sh\n", encoding="utf-8")
    (output / "legal").mkdir()
    (output / "legal" / "NOTICE").write_text("notice", encoding="utf-8")
