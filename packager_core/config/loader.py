"""Loading packaging tasks from YAML files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from packager_core.config.models import PackagingTask
from packager_core.errors import ConfigurationError

_LOGGER = logging.getLogger(__name__)


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        problems.append(f"{location}: {error.get('msg')}")
    return "; ".join(problems)


def _merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(dict(existing), value)
        else:
            merged[key] = value
    return merged


def task_from_mapping(
    data: Mapping[str, Any],
    *,
    base_dir: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> PackagingTask:
    """Validate ``data`` (plus ``overrides``) into a :class:`PackagingTask`."""

    payload = _merge(dict(data), overrides or {})
    try:
        task = PackagingTask.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid packaging task: {_format_validation_error(exc)}") from exc
    if base_dir is not None:
        task.rebase(base_dir)
    return task


def load_task(path: Path | str, *, overrides: Mapping[str, Any] | None = None) -> PackagingTask:
    """Read a YAML task file; relative paths inside it are relative to its folder."""

    task_path = Path(path).expanduser().resolve()
    if not task_path.is_file():
        raise ConfigurationError(f"Packaging task file doesn't exist: {task_path}")
    try:
        raw = yaml.safe_load(task_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Packaging task {task_path} contains invalid YAML: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Packaging task {task_path} must be a YAML mapping")
    # ``packager:`` wrapper is optional
    section = raw.get("packager", raw)
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Section 'packager' in {task_path} must be a mapping")
    _LOGGER.debug("Loaded packaging task from %s", task_path)
    return task_from_mapping(section, base_dir=task_path.parent, overrides=overrides)


__all__ = ["load_task", "task_from_mapping"]
