"""Artifact generator contract, the compile/link skeleton and the fail-fast loop."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar, Iterable

from packager_core.context import BuildContext
from packager_core.errors import GenerationFailure, PostconditionFailure, ToolInvocationFailure
from packager_core.templates import render
from packager_core.utils import files, xml_utils

_LOGGER = logging.getLogger(__name__)


class ArtifactGenerator(ABC):
    """Produces one installer-family file from the assembled application.

    Outputs are memoized in ``context.artifacts`` under :attr:`key`, so a
    second :meth:`apply` (from this or any other instance of the same kind)
    returns the cached file without running the tools again.
    """

    key: ClassVar[str]
    name: ClassVar[str]

    def enabled(self, context: BuildContext) -> bool:
        """Feature flag of this artifact kind."""

        return True

    def skip(self, context: BuildContext) -> bool:
        task = context.task
        if not self.enabled(context):
            _LOGGER.info("%s generation skipped: disabled by configuration", self.name)
            return True
        if not task.platform.is_current() and not task.force_installer:
            _LOGGER.warning(
                "%s cannot be generated: target platform (%s) is different than execution platform",
                self.name,
                task.platform.value,
            )
            return True
        return False

    def apply(self, context: BuildContext) -> Path:
        cached = context.artifacts.get(self.key)
        if cached is not None:
            if cached.exists():
                _LOGGER.debug("%s already generated: %s", self.name, cached)
                return cached
            _LOGGER.warning("%s %s was removed since it was generated, generating it again", self.name, cached)
            del context.artifacts[self.key]

        _LOGGER.info("Generating %s...", self.name)
        try:
            artifact = self._generate(context)
        except ToolInvocationFailure as exc:
            raise GenerationFailure(f"{self.name} generation failed: {exc}") from exc
        if not artifact.exists():
            raise PostconditionFailure(f"{self.name} generation failed: {artifact} doesn't exist")

        context.artifacts[self.key] = artifact
        _LOGGER.info("%s generated in %s!", self.name, artifact)
        return artifact

    @abstractmethod
    def _generate(self, context: BuildContext) -> Path:
        """Run the external tools; returns the expected output path."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CompiledDescriptorGenerator(ArtifactGenerator):
    """Render a markup descriptor, compile it, then link the final artifact.

    Subclasses may embed a previously produced artifact through
    :meth:`embedded_artifact`; it is resolved before rendering so the
    template can reference it.
    """

    template_id: ClassVar[str]
    extension: ClassVar[str]

    def descriptor_file(self, context: BuildContext) -> Path:
        assets: Path = context.require("assets_folder")
        return assets / f"{context.name}.{Path(self.template_id).name}"

    def output_file(self, context: BuildContext) -> Path:
        return context.artifact_file(self.extension)

    def embedded_artifact(self, context: BuildContext) -> Path | None:
        return None

    @abstractmethod
    def compile(self, context: BuildContext, descriptor: Path) -> Path:
        """Compile ``descriptor``; returns the intermediate object file."""

    @abstractmethod
    def link(self, context: BuildContext, compiled: Path, output: Path, embedded: Path | None) -> None:
        """Produce ``output`` from ``compiled`` (plus ``embedded`` when given)."""

    def _generate(self, context: BuildContext) -> Path:
        embedded = self.embedded_artifact(context)
        if embedded is not None and not embedded.exists():
            raise GenerationFailure(f"{self.name} generation failed: {embedded} doesn't exist")

        descriptor = render(self.template_id, self.descriptor_file(context), context)
        xml_utils.prettify(descriptor)

        compiled = self.compile(context, descriptor)
        if not compiled.exists():
            raise PostconditionFailure(f"{self.name} generation failed: {compiled} doesn't exist")

        output = self.output_file(context)
        files.mkdir(output.parent)
        self.link(context, compiled, output, embedded)
        return output


def generate_all(generators: Iterable[ArtifactGenerator], context: BuildContext) -> list[Path]:
    """Apply every generator not skipped, in order; the first failure aborts the sweep."""

    artifacts: list[Path] = []
    for generator in generators:
        if generator.skip(context):
            continue
        artifacts.append(generator.apply(context))
    return artifacts


__all__ = ["ArtifactGenerator", "CompiledDescriptorGenerator", "generate_all"]
