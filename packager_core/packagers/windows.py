"""Windows application folder: launcher, manifest and Authenticode signing."""
from __future__ import annotations

import logging
from pathlib import Path

from packager_core.config.models import WindowsLauncherMode
from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError
from packager_core.generators import ArtifactGenerator, GenerateMsi, GenerateMsm, GenerateSetup
from packager_core.packagers.base import PlatformPackager, register
from packager_core.platforms import Platform
from packager_core.signing import WindowsCodeSigner
from packager_core.templates import render
from packager_core.templates.helpers import elevated_launcher_name
from packager_core.utils import files, xml_utils

_LOGGER = logging.getLogger(__name__)


def launcher_stub_name(arch: str, mode: WindowsLauncherMode) -> str:
    return f"launcher-{arch}-{mode.value}.exe"


@register(Platform.WINDOWS)
class WindowsPackager(PlatformPackager):
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
        config = context.task.win_config

        self.place_jar(context)
        self.place_icon(context)
        context.classpath = ":".join(self.classpath_entries(context))
        self._create_startup(context)
        self._create_manifest(context)

        executable: Path = context.require("executable")
        if config.sign and self.target_matches(context, "Code signing"):
            if executable.suffix.lower() == ".exe":
                WindowsCodeSigner.from_config(config).sign(executable)
            else:
                _LOGGER.warning("Launcher %s is a script and cannot be signed", executable.name)
        return context.require("app_file")

    def _create_startup(self, context: BuildContext) -> None:
        task = context.task
        config = task.win_config
        folder: Path = context.require("executable_destination_folder")

        if task.administrator_required:
            render("windows/launcher.cmd", folder / elevated_launcher_name(task.name, ".cmd"), context)
            executable = render("windows/startup.cmd", folder / f"{task.name}.cmd", context)
            _LOGGER.info("Elevating startup script created in %s", executable)
        elif config.custom_launcher is not None:
            executable = self.copy_executable(config.custom_launcher, folder / f"{task.name}.exe")
            _LOGGER.info("Custom launcher copied to %s", executable)
        elif config.launcher_mode is WindowsLauncherMode.SCRIPT:
            executable = render("windows/launcher.cmd", folder / f"{task.name}.cmd", context)
            _LOGGER.info("Launcher script created in %s", executable)
        else:
            stub = task.assets_dir / "windows" / launcher_stub_name(config.arch, config.launcher_mode)
            if not stub.is_file():
                raise ConfigurationError(
                    f"Launcher stub not found: {stub}; use launcher_mode=script or provide the stub"
                )
            executable = self.copy_executable(stub, folder / f"{task.name}.exe")
            self._write_jvm_options(context, executable)
            _LOGGER.info("Launcher stub (%s, %s) copied to %s", config.arch, config.launcher_mode.value, executable)
        context.executable = executable

    def _write_jvm_options(self, context: BuildContext, executable: Path) -> None:
        """``<exe>.l4j.ini``: one JVM option per line, read by the launcher stub."""

        options = context.task.vm_args
        executable.with_suffix(".l4j.ini").write_text("\r\n".join(options) + "\r\n", encoding="utf-8")

    def _create_manifest(self, context: BuildContext) -> None:
        executable: Path = context.require("executable")
        manifest = executable.with_name(f"{executable.name}.manifest")
        custom = context.task.win_config.custom_manifest
        if custom is not None and custom.is_file():
            files.copy_file_to_file(custom, manifest)
            _LOGGER.info("Custom manifest copied to %s", manifest)
            return
        if custom is not None:
            _LOGGER.warning("Custom manifest %s doesn't exist, generating the default one", custom)
        render("windows/app.manifest", manifest, context)
        xml_utils.prettify(manifest)
        _LOGGER.info("Manifest file created in %s", manifest)

    def generators(self) -> list[ArtifactGenerator]:
        return [GenerateMsm(), GenerateMsi(), GenerateSetup()]


__all__ = ["WindowsPackager", "launcher_stub_name"]
