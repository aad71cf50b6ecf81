"""Target platform model and detection of the execution platform."""
from __future__ import annotations

import sys
from enum import Enum


class Platform(str, Enum):
    """Operating systems the packager can produce artifacts for."""

    AUTO = "auto"
    LINUX = "linux"
    MAC = "mac"
    WINDOWS = "windows"

    @classmethod
    def parse(cls, value: "str | Platform | None") -> "Platform":
        if value is None:
            return cls.AUTO
        if isinstance(value, Platform):
            return value
        normalized = str(value).strip().lower()
        alias = _ALIASES.get(normalized, normalized)
        try:
            return cls(alias)
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"Unsupported platform '{value}'. Available: {choices}") from None

    def is_current(self) -> bool:
        return self is current_platform()

    @property
    def icon_extension(self) -> str:
        return _ICON_EXTENSIONS.get(self, ".png")

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


_ALIASES = {
    "macos": "mac",
    "osx": "mac",
    "darwin": "mac",
    "win": "windows",
    "win32": "windows",
}

_ICON_EXTENSIONS = {
    Platform.LINUX: ".png",
    Platform.MAC: ".icns",
    Platform.WINDOWS: ".ico",
}


def current_platform() -> Platform:
    """Detect the platform the pipeline is running on."""

    if sys.platform.startswith("win") or sys.platform == "cygwin":
        return Platform.WINDOWS
    if sys.platform == "darwin":
        return Platform.MAC
    return Platform.LINUX


def is_current(platform: Platform) -> bool:
    return platform is current_platform()


def resolve(configured: "Platform | str | None") -> Platform:
    """Map ``auto`` to the execution platform, leave everything else unchanged."""

    platform = Platform.parse(configured)
    if platform is Platform.AUTO:
        return current_platform()
    return platform


__all__ = ["Platform", "current_platform", "is_current", "resolve"]
