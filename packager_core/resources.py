"""Resolution of the license and icon files shipped with the application."""
from __future__ import annotations

import logging
from pathlib import Path
from urllib.error import URLError

from packager_core.context import BuildContext
from packager_core.utils import files

_LOGGER = logging.getLogger(__name__)


def resolve_license(context: BuildContext, *, project_dir: Path | None = None) -> Path | None:
    """Find the license: explicit file, declared license URL, ``LICENSE`` in the project.

    Returns ``None`` when nothing is found. A malformed declared URL raises
    :class:`ConfigurationError`; a missing URL or a failed download only logs.
    """

    task = context.task
    license_file = task.license_file

    if license_file is not None and not license_file.exists():
        _LOGGER.warning("Specified license file doesn't exist: %s", license_file)
        license_file = None

    if license_file is None and task.licenses:
        url = task.licenses[0].validated_url()
        if url is None:
            _LOGGER.warning("License %s declares no URL", task.licenses[0].name or "<unnamed>")
        else:
            target = context.require("assets_folder") / "LICENSE"
            try:
                license_file = files.download_from_url(url, target)
            except (URLError, OSError, ValueError) as exc:
                _LOGGER.error("Cannot download license from %s: %s", url, exc)
                license_file = None

    if license_file is None or not license_file.exists():
        candidate = (project_dir or task.project_dir) / "LICENSE"
        license_file = candidate if candidate.is_file() else None

    if license_file is not None:
        _LOGGER.info("License file found: %s", license_file)
    else:
        _LOGGER.warning("No license file specified")
    return license_file


def resolve_icon(context: BuildContext) -> Path:
    """Find the icon: explicit file, ``<assets_dir>/<platform>/<name><ext>``, bundled default."""

    task = context.task
    extension = task.platform.icon_extension
    icon_file = task.icon_file

    if icon_file is None:
        icon_file = task.assets_dir / task.platform.value / f"{task.name}{extension}"

    if not icon_file.is_file():
        _LOGGER.warning("Icon %s not found, using the default icon", icon_file)
        target = context.require("assets_folder") / icon_file.name
        icon_file = files.copy_resource_to_file(f"{task.platform.value}/default-icon{extension}", target)

    _LOGGER.info("Icon file resolved: %s", icon_file)
    return icon_file


__all__ = ["resolve_icon", "resolve_license"]
