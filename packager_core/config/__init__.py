"""Packaging task configuration."""

from .loader import load_task, task_from_mapping
from .models import (
    DEFAULT_ORGANIZATION_NAME,
    LicenseInfo,
    LinuxConfig,
    MacConfig,
    MacStartup,
    PackagingTask,
    WindowsConfig,
    WindowsLauncherMode,
    numeric_version,
)

__all__ = [
    "DEFAULT_ORGANIZATION_NAME",
    "LicenseInfo",
    "LinuxConfig",
    "MacConfig",
    "MacStartup",
    "PackagingTask",
    "WindowsConfig",
    "WindowsLauncherMode",
    "load_task",
    "numeric_version",
    "task_from_mapping",
]
