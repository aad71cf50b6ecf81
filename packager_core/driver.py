"""Packager driver: sequences init, structure, resources, runtime, assembly and installers."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Iterable

from packager_core import platforms
from packager_core.config.models import PackagingTask
from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError, GenerationFailure
from packager_core.generators import ArtifactGenerator, generate_all
from packager_core.packagers import PlatformPackager, for_platform
from packager_core.resources import resolve_icon, resolve_license
from packager_core.runtime import bundle_runtime
from packager_core.toolchain import JavaToolchain, detect_toolchain
from packager_core.utils import files

_LOGGER = logging.getLogger(__name__)

RunnableJarFactory = Callable[[BuildContext], Path]

_ASSETS_FOLDER_NAME = "assets"


class PackagerDriver:
    """Runs one packaging task.

    ``create_runnable_jar`` builds the jar when ``task.runnable_jar`` is not a
    readable file; ``generators`` replaces the platform's installer list.
    """

    def __init__(
        self,
        task: PackagingTask,
        *,
        toolchain: JavaToolchain | None = None,
        create_runnable_jar: RunnableJarFactory | None = None,
        generators: Iterable[ArtifactGenerator] | None = None,
    ) -> None:
        self.task = task
        self.context = BuildContext(task=task)
        self._toolchain = toolchain
        self._create_runnable_jar = create_runnable_jar
        self._generators = list(generators) if generators is not None else None
        self._packager: PlatformPackager | None = None

    @property
    def toolchain(self) -> JavaToolchain:
        if self._toolchain is None:
            try:
                self._toolchain = detect_toolchain()
            except ConfigurationError:
                if self.task.jdk_path is None:
                    raise
                self._toolchain = detect_toolchain(self.task.jdk_path)
        return self._toolchain

    @property
    def packager(self) -> PlatformPackager:
        if self._packager is None:
            raise ConfigurationError("Packager not initialized, call init() first")
        return self._packager

    # ------------------------------------------------------------------
    def init(self) -> PlatformPackager:
        """Validate and default the task, then initialize the platform packager (idempotent)."""

        task = self.task
        task.apply_defaults(default_jdk=self.toolchain.home)
        task.retain_platform_config()
        if self._packager is None:
            self._packager = for_platform(task.platform)
        self._packager.init(self.context)
        _LOGGER.debug("Packager initialized for %s: %s", task.platform.value, self.context.describe())
        return self._packager

    def create_app_structure(self) -> Path:
        output = self.task.output_directory
        app_folder = output / self.task.name
        files.remove_folder(app_folder)
        self.context.app_folder = files.mkdir(app_folder)
        self.context.assets_folder = files.mkdir(output, _ASSETS_FOLDER_NAME)
        self.packager.create_structure(self.context)
        return app_folder

    def resolve_resources(self) -> None:
        self.context.license_file = resolve_license(self.context)
        self.context.icon_file = resolve_icon(self.context)

    def copy_additional_resources(self) -> list[Path]:
        destination: Path = self.context.require("resources_destination_folder")
        copied: list[Path] = []
        for resource in self.task.additional_resources:
            if resource.is_dir():
                copied.append(files.copy_folder_to_folder(resource, destination))
            elif resource.is_file():
                copied.append(files.copy_file_to_folder(resource, destination))
            else:
                _LOGGER.warning("Additional resource %s doesn't exist", resource)
        if copied:
            _LOGGER.info("Additional resources copied: %s", ", ".join(path.name for path in copied))
        return copied

    def resolve_runnable_jar(self) -> Path:
        jar = self.task.runnable_jar
        if files.is_readable_file(jar):
            _LOGGER.info("Using runnable JAR: %s", jar)
        else:
            if jar is not None:
                _LOGGER.warning("Runnable JAR %s doesn't exist or is not readable", jar)
            if self._create_runnable_jar is None:
                raise ConfigurationError("No runnable JAR specified and no way to build one")
            jar = self._create_runnable_jar(self.context)
            if not files.is_readable_file(jar):
                raise GenerationFailure(f"Runnable JAR was not created: {jar}")
            _LOGGER.info("Runnable JAR created: %s", jar)
        self.context.jar_file = jar
        return jar

    def copy_all_dependencies(self) -> Path | None:
        if not self.task.copy_dependencies:
            _LOGGER.info("Dependencies copy disabled by property 'copy_dependencies'")
            return None
        dependencies = [path for path in self.task.dependencies if path.is_file()]
        for missing in (path for path in self.task.dependencies if path not in dependencies):
            _LOGGER.warning("Dependency %s doesn't exist", missing)
        if not dependencies:
            return None

        jar_folder: Path = self.context.require("jar_file_destination_folder")
        libs_folder = files.mkdir(jar_folder, "libs")
        for dependency in dependencies:
            files.copy_file_to_folder(dependency, libs_folder)
        self.context.libs_folder = libs_folder
        _LOGGER.info("%d dependencies copied to %s", len(dependencies), libs_folder)
        return libs_folder

    def create_app(self) -> Path:
        """Build the application container (folder or ``.app`` bundle)."""

        _LOGGER.info("Creating app ...")
        self.init()
        self.create_app_structure()
        self.resolve_resources()
        self.copy_additional_resources()
        self.resolve_runnable_jar()
        self.copy_all_dependencies()
        bundle_runtime(self.context, self.toolchain)
        app_file = self.packager.assemble(self.context)
        _LOGGER.info("App created in %s!", app_file)
        return app_file

    def generate_installers(self) -> list[Path]:
        task = self.task
        if not task.generate_installer:
            _LOGGER.warning("Installer generation is disabled by 'generate_installer' property!")
            return []
        target = platforms.resolve(task.platform)
        if not target.is_current() and not task.force_installer:
            _LOGGER.warning(
                "Installers cannot be generated: target platform (%s) is different than execution platform",
                target.value,
            )
            return []

        packager = self.init()
        self.context.assets_folder = files.mkdir(task.output_directory, _ASSETS_FOLDER_NAME)
        generators = self._generators if self._generators is not None else packager.generators()
        _LOGGER.info("Generating installers ...")
        artifacts = generate_all(generators, self.context)
        _LOGGER.info("Installers generated: %s", ", ".join(str(path) for path in artifacts) or "none")
        return artifacts

    def create_bundles(self) -> list[Path]:
        """Zipball and/or tarball of the application folder."""

        task = self.task
        app_folder: Path = self.context.require("app_folder")
        base_name = task.output_directory / f"{task.name}-{task.version}-{task.platform.value}"
        formats = [("zip", task.create_zipball), ("gztar", task.create_tarball)]

        bundles: list[Path] = []
        for archive_format, enabled in formats:
            if not enabled:
                continue
            archive = shutil.make_archive(
                str(base_name),
                archive_format,
                root_dir=app_folder.parent,
                base_dir=app_folder.name,
            )
            bundles.append(Path(archive))
            _LOGGER.info("Bundle created: %s", archive)
        return bundles


__all__ = ["PackagerDriver", "RunnableJarFactory"]
