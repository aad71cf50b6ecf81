"""Platform packagers, one per target operating system."""
from __future__ import annotations

from packager_core.packagers.base import PACKAGERS, PlatformPackager, for_platform, register
from packager_core.packagers.linux import LinuxPackager
from packager_core.packagers.mac import MacPackager
from packager_core.packagers.windows import WindowsPackager

__all__ = [
    "PACKAGERS",
    "LinuxPackager",
    "MacPackager",
    "PlatformPackager",
    "WindowsPackager",
    "for_platform",
    "register",
]
