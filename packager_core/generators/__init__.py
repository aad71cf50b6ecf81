"""Installer-family artifact generators, registered per target platform."""
from __future__ import annotations

from packager_core.generators.base import ArtifactGenerator, CompiledDescriptorGenerator, generate_all
from packager_core.generators.linux import GenerateDeb, GenerateRpm
from packager_core.generators.macos import GenerateDmg, GeneratePkg
from packager_core.generators.windows import GenerateMsi, GenerateMsm, GenerateSetup

__all__ = [
    "ArtifactGenerator",
    "CompiledDescriptorGenerator",
    "GenerateDeb",
    "GenerateDmg",
    "GenerateMsi",
    "GenerateMsm",
    "GeneratePkg",
    "GenerateRpm",
    "GenerateSetup",
    "generate_all",
]
