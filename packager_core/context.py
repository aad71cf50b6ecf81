"""Build context threaded through the packaging stages."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from packager_core.config.models import PackagingTask
from packager_core.errors import PackagerStateError

_WRITE_ONCE_FIELDS = frozenset(
    {
        "app_folder",
        "assets_folder",
        "app_file",
        "executable",
        "jar_file",
        "libs_folder",
        "license_file",
        "icon_file",
        "executable_destination_folder",
        "jar_file_destination_folder",
        "jre_destination_folder",
        "resources_destination_folder",
        "classpath",
        "runtime_bundled",
    }
)


@dataclass
class BuildContext:
    """Task plus the values discovered while the pipeline runs.

    Every derived field is written by the stage responsible for it and only
    read afterwards; assigning a different value to a field that is already
    set raises :class:`PackagerStateError`.
    """

    task: PackagingTask
    app_folder: Path | None = None
    assets_folder: Path | None = None
    app_file: Path | None = None
    executable: Path | None = None
    jar_file: Path | None = None
    libs_folder: Path | None = None
    license_file: Path | None = None
    icon_file: Path | None = None
    executable_destination_folder: Path | None = None
    jar_file_destination_folder: Path | None = None
    jre_destination_folder: Path | None = None
    resources_destination_folder: Path | None = None
    classpath: str | None = None
    runtime_bundled: bool | None = None
    artifacts: dict[str, Path] = field(default_factory=dict)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _WRITE_ONCE_FIELDS:
            current = self.__dict__.get(name)
            if current is not None and current != value:
                raise PackagerStateError(
                    f"Build context field '{name}' is already set to {current!r}, refusing {value!r}"
                )
        object.__setattr__(self, name, value)

    def require(self, name: str, *, error: type[Exception] = PackagerStateError) -> Any:
        """Return field ``name`` or raise ``error`` when a previous stage did not set it."""

        value = getattr(self, name)
        if value is None:
            raise error(f"'{name}' is not available; the stage producing it has not run")
        return value

    @property
    def name(self) -> str:
        return self.task.name

    @property
    def version(self) -> str:
        return self.task.version

    @property
    def output_directory(self) -> Path:
        return self.task.output_directory

    def artifact_file(self, extension: str) -> Path:
        """Deterministic installer location: ``<output>/<name>_<version>.<extension>``."""

        return self.output_directory / f"{self.name}_{self.version}.{extension}"

    def describe(self) -> dict[str, object]:
        """Snapshot used for debug logging."""

        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if item.name not in {"task", "artifacts"}
        }


__all__ = ["BuildContext"]
