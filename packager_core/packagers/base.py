"""Per-platform packager contract and registry."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, ClassVar, TypeVar

from packager_core import platforms
from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError
from packager_core.generators import ArtifactGenerator
from packager_core.platforms import Platform
from packager_core.templates.helpers import relative
from packager_core.utils import files

_LOGGER = logging.getLogger(__name__)


class PlatformPackager(ABC):
    """Init, structure and assembly steps of one target platform.

    Stage sequencing is owned by the driver; a packager only knows how its
    platform lays out and completes an application.
    """

    platform: ClassVar[Platform]

    def init(self, context: BuildContext) -> None:
        task = context.task
        task.platform_config().set_defaults(task)

    @abstractmethod
    def create_structure(self, context: BuildContext) -> None:
        """Create the layout and record the destination folders."""

    @abstractmethod
    def assemble(self, context: BuildContext) -> Path:
        """Complete the application; returns the application container."""

    @abstractmethod
    def generators(self) -> list[ArtifactGenerator]:
        """Installer generators of this platform, in execution order."""

    # ------------------------------------------------------------------
    def place_jar(self, context: BuildContext) -> Path:
        jar_file: Path = context.require("jar_file")
        destination: Path = context.require("jar_file_destination_folder")
        target = destination / jar_file.name
        if jar_file.resolve() != target.resolve():
            files.copy_file_to_file(jar_file, target)
        return target

    def place_icon(self, context: BuildContext) -> Path:
        icon: Path = context.require("icon_file")
        return files.copy_file_to_folder(icon, context.require("resources_destination_folder"))

    def classpath_entries(self, context: BuildContext) -> list[str]:
        """Runnable jar, copied libraries and extra entries, relative to the jar folder."""

        jar_folder: Path = context.require("jar_file_destination_folder")
        entries = [context.require("jar_file").name]
        if context.libs_folder is not None and context.libs_folder.is_dir():
            entries.extend(relative(lib, jar_folder) for lib in sorted(context.libs_folder.glob("*.jar")))
        if context.task.classpath:
            entries.extend(entry for entry in context.task.classpath.replace(";", ":").split(":") if entry)
        return entries

    def target_matches(self, context: BuildContext, feature: str) -> bool:
        """``False`` (with a warning) when ``feature`` has to run on the target platform itself."""

        if context.task.platform.is_current():
            return True
        _LOGGER.warning(
            "%s skipped: it can only be done on %s (running on %s)",
            feature,
            context.task.platform.value,
            platforms.current_platform().value,
        )
        return False

    def copy_executable(self, source: Path, destination: Path) -> Path:
        if not source.is_file():
            raise ConfigurationError(f"Launcher not found: {source}")
        files.copy_file_to_file(source, destination)
        files.set_executable(destination)
        return destination


PACKAGERS: dict[Platform, type[PlatformPackager]] = {}

_P = TypeVar("_P", bound=type[PlatformPackager])


def register(platform: Platform) -> Callable[[_P], _P]:
    def decorator(cls: _P) -> _P:
        cls.platform = platform
        PACKAGERS[platform] = cls
        return cls

    return decorator


def for_platform(platform: Platform) -> PlatformPackager:
    try:
        packager_cls = PACKAGERS[platform]
    except KeyError:
        raise ConfigurationError(f"Unsupported platform: {platform}") from None
    return packager_cls()


__all__ = ["PACKAGERS", "PlatformPackager", "for_platform", "register"]
