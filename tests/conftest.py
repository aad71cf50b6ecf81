"""Shared fixtures: execution platform, recorded external tools, a minimal task."""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

from packager_core import platforms
from packager_core.config.models import PackagingTask
from packager_core.logging import LOGGER_NAME
from packager_core.platforms import Platform
from packager_core.toolchain import JavaToolchain
from tests._tool_helpers import FakeTools, make_jdk


@pytest.fixture(autouse=True)
def linux_host(monkeypatch: pytest.MonkeyPatch) -> Callable[[Platform], None]:
    """Run every test as if executing on Linux; call the fixture to switch hosts."""

    def set_host(platform: Platform) -> None:
        monkeypatch.setattr(platforms, "current_platform", lambda: platform)

    set_host(Platform.LINUX)
    return set_host


@pytest.fixture
def fake_tools(monkeypatch: pytest.MonkeyPatch) -> FakeTools:
    tools = FakeTools()
    monkeypatch.setattr(subprocess, "run", tools)
    return tools


@pytest.fixture
def fake_jdk(tmp_path: Path) -> Path:
    return make_jdk(tmp_path / "jdk")


@pytest.fixture
def toolchain(fake_jdk: Path) -> JavaToolchain:
    return JavaToolchain(home=fake_jdk, version="17.0.2")


@pytest.fixture
def jar_file(tmp_path: Path) -> Path:
    jar = tmp_path / "build" / "demo-1.0.jar"
    jar.parent.mkdir(parents=True)
    jar.write_bytes(b"PK\x03\x04demo")
    return jar


@pytest.fixture
def make_task(tmp_path: Path, fake_jdk: Path, jar_file: Path) -> Callable[..., PackagingTask]:
    project_dir = tmp_path / "project"
    project_dir.mkdir()

    def factory(**overrides: Any) -> PackagingTask:
        values: dict[str, Any] = {
            "name": "Demo",
            "version": "1.0",
            "main_class": "demo.Main",
            "platform": "linux",
            "output_directory": tmp_path / "target",
            "project_dir": project_dir,
            "assets_dir": tmp_path / "assets",
            "jdk_path": fake_jdk,
            "runnable_jar": jar_file,
            "bundle_jre": False,
        }
        values.update(overrides)
        return PackagingTask.model_validate(values)

    return factory


@pytest.fixture(autouse=True)
def reset_packager_logger() -> Iterator[None]:
    """Undo ``setup_logging`` so ``caplog`` keeps seeing records in later tests."""

    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    if hasattr(logger, "_packager_logging_configured"):
        delattr(logger, "_packager_logging_configured")
