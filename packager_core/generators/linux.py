"""Linux packages built with ``dpkg-deb`` and ``rpmbuild``."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path

from packager_core.context import BuildContext
from packager_core.errors import PostconditionFailure
from packager_core.generators.base import ArtifactGenerator
from packager_core.templates import render
from packager_core.templates.linux import install_folder
from packager_core.utils import commands, files

_LOGGER = logging.getLogger(__name__)


def desktop_file(context: BuildContext) -> Path:
    app_folder: Path = context.require("app_folder")
    return app_folder / f"{context.name}.desktop"


class GenerateDeb(ArtifactGenerator):
    key = "deb"
    name = "DEB package"

    def enabled(self, context: BuildContext) -> bool:
        return context.task.linux_config.generate_deb

    def _generate(self, context: BuildContext) -> Path:
        assets: Path = context.require("assets_folder")
        app_folder: Path = context.require("app_folder")

        staging = assets / "deb" / context.task.linux_config.package_name
        files.remove_folder(staging)
        render("linux/control", staging / "DEBIAN" / "control", context)
        files.copy_folder_content_to_folder(app_folder, staging / install_folder(context).lstrip("/"))

        desktop = desktop_file(context)
        if desktop.exists():
            files.copy_file_to_folder(desktop, files.mkdir(staging, "usr", "share", "applications"))

        output = context.artifact_file("deb")
        files.mkdir(output.parent)
        commands.execute("dpkg-deb", "--build", "--root-owner-group", staging, output)
        return output


class GenerateRpm(ArtifactGenerator):
    key = "rpm"
    name = "RPM package"

    def enabled(self, context: BuildContext) -> bool:
        return context.task.linux_config.generate_rpm

    def _generate(self, context: BuildContext) -> Path:
        assets: Path = context.require("assets_folder")
        topdir = assets / "rpmbuild"
        files.remove_folder(topdir)
        spec = render("linux/rpm.spec", files.mkdir(topdir, "SPECS") / f"{context.name}.spec", context)

        commands.execute(
            "rpmbuild",
            "-bb",
            "--define",
            f"_topdir {topdir}",
            "--define",
            f"_rpmdir {topdir / 'RPMS'}",
            spec,
        )

        built = sorted((topdir / "RPMS").rglob("*.rpm"))
        if not built:
            raise PostconditionFailure(f"{self.name} generation failed: rpmbuild produced no package in {topdir}")
        output = context.artifact_file("rpm")
        files.mkdir(output.parent)
        shutil.move(str(built[0]), output)
        _LOGGER.debug("Moved %s to %s", built[0], output)
        return output


__all__ = ["GenerateDeb", "GenerateRpm", "desktop_file"]
