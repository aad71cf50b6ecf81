"""macOS disk image and installer package."""
from __future__ import annotations

from pathlib import Path

from packager_core.context import BuildContext
from packager_core.generators.base import ArtifactGenerator
from packager_core.utils import commands, files


class GenerateDmg(ArtifactGenerator):
    key = "dmg"
    name = "DMG image"

    def enabled(self, context: BuildContext) -> bool:
        return context.task.mac_config.generate_dmg

    def _generate(self, context: BuildContext) -> Path:
        assets: Path = context.require("assets_folder")
        app_file: Path = context.require("app_file")

        staging = assets / "dmg"
        files.remove_folder(staging)
        files.copy_folder_to_folder(app_file, files.mkdir(staging))
        (staging / "Applications").symlink_to("/Applications")

        output = context.artifact_file("dmg")
        files.mkdir(output.parent)
        commands.execute(
            "hdiutil",
            "create",
            "-srcfolder",
            staging,
            "-volname",
            context.task.mac_config.volume_name,
            "-fs",
            "HFS+",
            "-format",
            "UDZO",
            "-ov",
            output,
        )
        return output


class GeneratePkg(ArtifactGenerator):
    key = "pkg"
    name = "PKG installer"

    def enabled(self, context: BuildContext) -> bool:
        return context.task.mac_config.generate_pkg

    def _generate(self, context: BuildContext) -> Path:
        app_file: Path = context.require("app_file")
        config = context.task.mac_config
        output = context.artifact_file("pkg")
        files.mkdir(output.parent)
        commands.execute(
            "pkgbuild",
            "--install-location",
            "/Applications",
            "--component",
            app_file,
            "--identifier",
            config.app_id,
            "--version",
            context.version,
            output,
        )
        return output


__all__ = ["GenerateDmg", "GeneratePkg"]
