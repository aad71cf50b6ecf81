"""Linux application folder: startup script and desktop entry."""
from __future__ import annotations

import logging
from pathlib import Path

from packager_core.context import BuildContext
from packager_core.generators import ArtifactGenerator, GenerateDeb, GenerateRpm
from packager_core.generators.linux import desktop_file
from packager_core.packagers.base import PlatformPackager, register
from packager_core.platforms import Platform
from packager_core.templates import render
from packager_core.templates.helpers import elevated_launcher_name
from packager_core.utils import files

_LOGGER = logging.getLogger(__name__)


@register(Platform.LINUX)
class LinuxPackager(PlatformPackager):
    def create_structure(self, context: BuildContext) -> None:
        app_folder: Path = context.require("app_folder")
        files.mkdir(app_folder)
        context.app_file = app_folder
        context.executable_destination_folder = app_folder
        context.jar_file_destination_folder = app_folder
        context.resources_destination_folder = app_folder
        context.jre_destination_folder = app_folder / context.task.jre_directory_name
        _LOGGER.info("Application folder created in %s", app_folder)

    def assemble(self, context: BuildContext) -> Path:
        self.place_jar(context)
        self.place_icon(context)
        context.classpath = ":".join(self.classpath_entries(context))
        self._create_startup(context)
        self._create_desktop_entry(context)
        return context.require("app_file")

    def _create_startup(self, context: BuildContext) -> None:
        task = context.task
        folder: Path = context.require("executable_destination_folder")
        executable = folder / task.name
        custom = task.linux_config.custom_launcher

        if task.administrator_required:
            launcher = render("linux/startup.sh", folder / elevated_launcher_name(task.name), context)
            files.set_executable(launcher)
            render("linux/admin-startup.sh", executable, context)
            _LOGGER.info("Elevating startup script created in %s", executable)
        elif custom is not None:
            self.copy_executable(custom, executable)
            _LOGGER.info("Custom launcher copied to %s", executable)
        else:
            render("linux/startup.sh", executable, context)
            _LOGGER.info("Startup script created in %s", executable)
        files.set_executable(executable)
        context.executable = executable

    def _create_desktop_entry(self, context: BuildContext) -> None:
        desktop = desktop_file(context)
        custom = context.task.linux_config.custom_desktop_file
        if custom is not None and custom.is_file():
            files.copy_file_to_file(custom, desktop)
            _LOGGER.info("Custom desktop file copied to %s", desktop)
            return
        if custom is not None:
            _LOGGER.warning("Custom desktop file %s doesn't exist, generating the default one", custom)
        render("linux/desktop", desktop, context)
        _LOGGER.info("Desktop file created in %s", desktop)

    def generators(self) -> list[ArtifactGenerator]:
        return [GenerateDeb(), GenerateRpm()]


__all__ = ["LinuxPackager"]
