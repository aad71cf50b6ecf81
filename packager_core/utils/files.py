"""File-system helpers used by the packaging stages (copy, remove, download)."""
from __future__ import annotations

import logging
import os
import shutil
import stat
import urllib.request
from pathlib import Path

_LOGGER = logging.getLogger(__name__)

ASSETS_ROOT = Path(__file__).resolve().parents[1] / "assets"


def mkdir(path: Path, *children: str) -> Path:
    folder = path.joinpath(*children)
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def copy_file_to_file(source: Path, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)
    return destination


def copy_file_to_folder(source: Path, folder: Path) -> Path:
    return copy_file_to_file(source, folder / source.name)


def copy_folder_to_folder(source: Path, folder: Path) -> Path:
    """Copy ``source`` itself (not only its content) into ``folder``."""

    destination = folder / source.name
    shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
    return destination


def copy_folder_content_to_folder(source: Path, destination: Path) -> Path:
    shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
    return destination


def remove_folder(folder: Path) -> None:
    if folder.exists():
        shutil.rmtree(folder)


def set_executable(path: Path) -> None:
    """Equivalent of ``chmod a+x``."""

    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def set_folder_executable(folder: Path) -> None:
    for entry in folder.iterdir():
        if entry.is_file():
            set_executable(entry)


def download_from_url(url: str, destination: Path, *, timeout: float = 30.0) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    _LOGGER.info("Downloading %s", url)
    with urllib.request.urlopen(url, timeout=timeout) as response:  # noqa: S310 - URL validated by caller
        payload = response.read()
    destination.write_bytes(payload)
    return destination


def resource_path(resource: str) -> Path:
    return ASSETS_ROOT / resource.lstrip("/")


def copy_resource_to_file(resource: str, destination: Path, *, unix_newlines: bool = False) -> Path:
    """Copy a bundled asset; ``unix_newlines`` converts CRLF for shell scripts."""

    source = resource_path(resource)
    if not source.is_file():
        raise FileNotFoundError(f"Bundled resource not found: {resource}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    if unix_newlines:
        content = source.read_bytes().replace(b"\r\n", b"\n")
        destination.write_bytes(content)
    else:
        shutil.copyfile(source, destination)
    return destination


def is_readable_file(path: Path | None) -> bool:
    return path is not None and path.is_file() and os.access(path, os.R_OK)


__all__ = [
    "ASSETS_ROOT",
    "copy_file_to_file",
    "copy_file_to_folder",
    "copy_folder_content_to_folder",
    "copy_folder_to_folder",
    "copy_resource_to_file",
    "download_from_url",
    "is_readable_file",
    "mkdir",
    "remove_folder",
    "resource_path",
    "set_executable",
    "set_folder_executable",
]
