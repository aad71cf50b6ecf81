"""Discovery of the JDK the pipeline executes with (``jlink``/``jdeps`` provider)."""
from __future__ import annotations

import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from packager_core.errors import ConfigurationError, ToolInvocationFailure
from packager_core.utils import commands

_LOGGER = logging.getLogger(__name__)

_RELEASE_VERSION = re.compile(r'^JAVA_VERSION="?(?P<version>[^"\s]+)"?\s*$', re.MULTILINE)
_CLI_VERSION = re.compile(r'version "(?P<version>[^"]+)"')


@dataclass(slots=True, frozen=True)
class JavaToolchain:
    """Location and version of a JDK."""

    home: Path
    version: str

    @property
    def major_version(self) -> int:
        return parse_major_version(self.version)

    def tool(self, name: str) -> Path:
        executable = self.home / "bin" / name
        windows_executable = executable.with_name(f"{name}.exe")
        if not executable.exists() and windows_executable.exists():
            return windows_executable
        return executable

    @property
    def jmods(self) -> Path:
        return self.home / "jmods"


def parse_major_version(version: str) -> int:
    """Return the feature release number; ``1.8.0_292`` is Java 8."""

    parts = re.split(r"[._+\-]", version.strip())
    try:
        first = int(parts[0])
        if first == 1 and len(parts) > 1:
            return int(parts[1])
        return first
    except (IndexError, ValueError):
        raise ConfigurationError(f"Cannot parse Java version: {version!r}") from None


def read_version(home: Path) -> str:
    """Read the JDK version from its ``release`` file, falling back to ``java -version``."""

    release = home / "release"
    if release.is_file():
        match = _RELEASE_VERSION.search(release.read_text(encoding="utf-8", errors="replace"))
        if match:
            return match.group("version")

    java = JavaToolchain(home=home, version="0").tool("java")
    if not java.exists():
        raise ConfigurationError(f"Cannot determine Java version of {home}: no release file and no bin/java")
    try:
        output = commands.execute(java, "-version")
    except ToolInvocationFailure as exc:
        raise ConfigurationError(f"Cannot determine Java version of {home}: {exc}") from exc
    match = _CLI_VERSION.search(output)
    if not match:
        raise ConfigurationError(f"Cannot determine Java version of {home} from 'java -version'")
    return match.group("version")


def _home_from_path() -> Path | None:
    java = shutil.which("java")
    if java is None:
        return None
    return Path(java).resolve().parent.parent


def detect_toolchain(home: Path | None = None) -> JavaToolchain:
    """Locate the executing JDK (``JAVA_HOME`` first, then ``java`` on ``PATH``)."""

    if home is None:
        env_home = os.environ.get("JAVA_HOME")
        home = Path(env_home).expanduser() if env_home else _home_from_path()
    if home is None:
        raise ConfigurationError("No JDK found: set JAVA_HOME or put 'java' on PATH")
    if not home.is_dir():
        raise ConfigurationError(f"JDK path doesn't exist: {home}")
    toolchain = JavaToolchain(home=home.resolve(), version=read_version(home))
    _LOGGER.debug("Using JDK %s (version %s)", toolchain.home, toolchain.version)
    return toolchain


__all__ = ["JavaToolchain", "detect_toolchain", "parse_major_version", "read_version"]
