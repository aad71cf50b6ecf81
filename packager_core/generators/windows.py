"""Windows installers: WiX merge module and MSI, Inno Setup executable."""
from __future__ import annotations

from pathlib import Path

from packager_core.context import BuildContext
from packager_core.generators.base import ArtifactGenerator, CompiledDescriptorGenerator
from packager_core.signing import WindowsCodeSigner
from packager_core.templates import render
from packager_core.utils import commands


def _sign_installer(context: BuildContext, installer: Path) -> None:
    config = context.task.win_config
    if not config.sign or not installer.exists():
        return
    WindowsCodeSigner.from_config(config).sign(installer)


class _WixGenerator(CompiledDescriptorGenerator):
    def compile(self, context: BuildContext, descriptor: Path) -> Path:
        compiled = descriptor.with_suffix(".wixobj")
        arch = context.task.win_config.arch
        commands.execute("candle", "-nologo", "-arch", arch, "-out", compiled, descriptor)
        return compiled

    def link(self, context: BuildContext, compiled: Path, output: Path, embedded: Path | None) -> None:
        bind_paths = ["-b", str(embedded.parent)] if embedded is not None else []
        commands.execute("light", "-nologo", "-sw1076", "-spdb", bind_paths, "-out", output, compiled)


class GenerateMsm(_WixGenerator):
    """Merge module with the whole application folder, reused by the MSI."""

    key = "msm"
    name = "MSI merge module"
    template_id = "windows/msm.wxs"
    extension = "msm"

    def enabled(self, context: BuildContext) -> bool:
        config = context.task.win_config
        return config.generate_msm or config.generate_msi


class GenerateMsi(_WixGenerator):
    key = "msi"
    name = "MSI installer"
    template_id = "windows/msi.wxs"
    extension = "msi"

    def enabled(self, context: BuildContext) -> bool:
        return context.task.win_config.generate_msi

    def embedded_artifact(self, context: BuildContext) -> Path | None:
        return GenerateMsm().apply(context)

    def link(self, context: BuildContext, compiled: Path, output: Path, embedded: Path | None) -> None:
        super().link(context, compiled, output, embedded)
        _sign_installer(context, output)


class GenerateSetup(ArtifactGenerator):
    """Self-extracting setup executable built by Inno Setup."""

    key = "setup"
    name = "Setup"

    def enabled(self, context: BuildContext) -> bool:
        return context.task.win_config.generate_setup

    def _generate(self, context: BuildContext) -> Path:
        assets: Path = context.require("assets_folder")
        script = render("windows/iss", assets / f"{context.name}.iss", context)
        output = context.artifact_file("exe")
        commands.execute("iscc", f"/O{output.parent}", f"/F{output.stem}", script)
        _sign_installer(context, output)
        return output


__all__ = ["GenerateMsi", "GenerateMsm", "GenerateSetup"]
