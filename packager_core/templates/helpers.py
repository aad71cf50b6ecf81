"""Escaping and path helpers shared by the built-in templates."""
from __future__ import annotations

import os
import shlex
import uuid
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

from packager_core.context import BuildContext


def xml_text(value: object) -> str:
    return escape("" if value is None else str(value))


def xml_attr(value: object) -> str:
    return quoteattr("" if value is None else str(value))


def sh(value: object) -> str:
    return shlex.quote(str(value))


def relative(path: Path, start: Path) -> str:
    return Path(os.path.relpath(path, start)).as_posix()


def windows_relative(path: Path, start: Path) -> str:
    return relative(path, start).replace("/", "\\")


def stable_guid(*parts: object) -> str:
    seed = "/".join(str(part) for part in parts)
    return str(uuid.uuid5(uuid.NAMESPACE_URL, seed)).upper()


def stable_id(prefix: str, *parts: object) -> str:
    """WiX identifier (letters, digits, underscore, at most 72 chars)."""

    digest = uuid.uuid5(uuid.NAMESPACE_URL, "/".join(str(part) for part in parts)).hex
    return f"{prefix}_{digest[:24]}"


def runtime_bundled(context: BuildContext) -> bool:
    return bool(context.runtime_bundled) and context.jre_destination_folder is not None


def classpath_entries(context: BuildContext) -> list[str]:
    return [entry for entry in (context.classpath or "").split(":") if entry]


def elevated_launcher_name(name: str, suffix: str = "") -> str:
    """File name of the real launcher started by an elevation helper."""

    return f"{name}-launcher{suffix}"


__all__ = [
    "classpath_entries",
    "elevated_launcher_name",
    "relative",
    "runtime_bundled",
    "sh",
    "stable_guid",
    "stable_id",
    "windows_relative",
    "xml_attr",
    "xml_text",
]
