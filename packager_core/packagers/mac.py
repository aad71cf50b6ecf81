"""macOS ``.app`` bundle: layout, launcher stub, Info.plist, signing and notarization."""
from __future__ import annotations

import logging
from pathlib import Path

from packager_core.config.models import MacStartup
from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError
from packager_core.generators import ArtifactGenerator, GenerateDmg, GeneratePkg
from packager_core.packagers.base import PlatformPackager, register
from packager_core.platforms import Platform
from packager_core.signing import MacCodeSigner, Notarizer
from packager_core.templates import render
from packager_core.templates.helpers import relative
from packager_core.templates.mac import STUB_NAME
from packager_core.utils import files, xml_utils

_LOGGER = logging.getLogger(__name__)

_RESOURCES_VARIABLE = "$ResourcesFolder"


@register(Platform.MAC)
class MacPackager(PlatformPackager):
    def init(self, context: BuildContext) -> None:
        super().init(context)
        task = context.task
        if not task.use_resources_as_working_dir:
            _LOGGER.warning(
                "'use_resources_as_working_dir' property disabled on macOS (the bundle always "
                "starts in Contents/Resources)"
            )
            task.use_resources_as_working_dir = True

    def create_structure(self, context: BuildContext) -> None:
        task = context.task
        app_folder: Path = context.require("app_folder")

        app_file = app_folder / f"{task.name}.app"
        contents = files.mkdir(app_file, "Contents")
        resources = files.mkdir(contents, "Resources")
        jar_folder = files.mkdir(resources, "Java") if task.mac_config.relocate_jar else resources
        macos = files.mkdir(contents, "MacOS")

        context.app_file = app_file
        context.resources_destination_folder = resources
        context.jar_file_destination_folder = jar_folder
        context.executable_destination_folder = macos
        context.jre_destination_folder = contents / "PlugIns" / task.jre_directory_name / "Contents" / "Home"
        _LOGGER.info("App bundle structure created in %s", app_file)

    # ------------------------------------------------------------------
    def assemble(self, context: BuildContext) -> Path:
        app_file: Path = context.require("app_file")
        contents = app_file / "Contents"
        config = context.task.mac_config

        self.place_jar(context)
        self.place_icon(context)
        self._create_startup(context)
        self._set_classpath(context)
        self._create_info_plist(context, contents)
        self._copy_provision_profile(context, contents)

        if config.codesign_app and self.target_matches(context, "Code signing"):
            MacCodeSigner.from_config(config, self._entitlements(context)).sign(app_file)
        if config.notarize_app and self.target_matches(context, "Notarization"):
            self._notarize(context, app_file)
        return app_file

    def _copy_stub(self, context: BuildContext, destination: Path) -> Path:
        startup = context.task.mac_config.mac_startup
        if startup is MacStartup.SCRIPT:
            stub = files.copy_resource_to_file(f"mac/{startup.stub_resource}", destination, unix_newlines=True)
            files.set_executable(stub)
            return stub
        candidate = context.task.assets_dir / "mac" / startup.stub_resource
        if not candidate.is_file():
            raise ConfigurationError(
                f"Launcher stub {startup.stub_resource} for mac_startup={startup.value} not found in "
                f"{candidate.parent}; use mac_startup=SCRIPT or provide the stub"
            )
        return self.copy_executable(candidate, destination)

    def _create_startup(self, context: BuildContext) -> None:
        task = context.task
        macos: Path = context.require("executable_destination_folder")
        custom = task.mac_config.custom_launcher

        if task.administrator_required:
            executable = render("mac/startup", macos / "startup", context)
            files.set_executable(executable)
            self._copy_stub(context, macos / STUB_NAME)
            _LOGGER.info("Startup script file created in %s", executable)
        elif custom is not None:
            executable = self.copy_executable(custom, macos / custom.name)
            _LOGGER.info("Custom launcher copied to %s", executable)
        else:
            executable = self._copy_stub(context, macos / STUB_NAME)
            _LOGGER.info("Launcher stub (%s) copied to %s", task.mac_config.mac_startup.value, executable)
        context.executable = executable

    def _set_classpath(self, context: BuildContext) -> None:
        resources: Path = context.require("resources_destination_folder")
        jar_folder: Path = context.require("jar_file_destination_folder")
        prefix = relative(jar_folder, resources)
        base = _RESOURCES_VARIABLE if prefix == "." else f"{_RESOURCES_VARIABLE}/{prefix}"
        context.classpath = ":".join(
            entry if entry.startswith("/") else f"{base}/{entry}" for entry in self.classpath_entries(context)
        )

    def _create_info_plist(self, context: BuildContext, contents: Path) -> None:
        info_plist = contents / "Info.plist"
        custom = context.task.mac_config.custom_info_plist
        if custom is not None and custom.is_file():
            files.copy_file_to_file(custom, info_plist)
            _LOGGER.info("Custom Info.plist file copied to %s", info_plist)
        else:
            if custom is not None:
                _LOGGER.warning("Custom Info.plist %s doesn't exist, generating the default one", custom)
            render("mac/Info.plist", info_plist, context)
            xml_utils.prettify(info_plist)
            _LOGGER.info("Info.plist file created in %s", info_plist)
        (contents / "PkgInfo").write_text("APPL????", encoding="ascii")

    def _copy_provision_profile(self, context: BuildContext, contents: Path) -> None:
        profile = context.task.mac_config.provision_profile
        if profile is None:
            return
        if not profile.is_file():
            _LOGGER.warning("Provision profile %s doesn't exist", profile)
            return
        files.copy_file_to_file(profile, contents / "embedded.provisionprofile")
        _LOGGER.info("Provision profile copied from %s", profile)

    def _entitlements(self, context: BuildContext) -> Path:
        configured = context.task.mac_config.entitlements
        if configured is not None:
            if not configured.is_file():
                raise ConfigurationError(f"Entitlements file doesn't exist: {configured}")
            return configured
        assets: Path = context.require("assets_folder")
        return render("mac/entitlements.plist", assets / "entitlements.plist", context)

    def _notarize(self, context: BuildContext, app_file: Path) -> None:
        if not context.task.mac_config.codesign_app:
            _LOGGER.warning("Notarizing an app that was not signed by this run")
        result = Notarizer.from_config(context.task.mac_config).notarize(
            app_file, work_dir=context.require("assets_folder")
        )
        if result.accepted:
            _LOGGER.info("App notarized (submission %s)", result.submission_id)
        else:
            _LOGGER.warning(
                "Notarization result is inconclusive (status: %s); check submission %s later",
                result.status or "unknown",
                result.submission_id or "?",
            )

    def generators(self) -> list[ArtifactGenerator]:
        return [GenerateDmg(), GeneratePkg()]


__all__ = ["MacPackager"]
