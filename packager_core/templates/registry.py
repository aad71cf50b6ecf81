"""Template registry: built-in renderers plus user overrides from ``assets_dir``."""
from __future__ import annotations

import logging
import string
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping

from pydantic import BaseModel

from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError

_LOGGER = logging.getLogger(__name__)

Renderer = Callable[[BuildContext], str]

_REGISTRY: dict[str, Renderer] = {}


def template(template_id: str) -> Callable[[Renderer], Renderer]:
    """Register ``func`` as the built-in renderer of ``template_id``."""

    def decorator(func: Renderer) -> Renderer:
        if template_id in _REGISTRY:
            raise ValueError(f"Template {template_id} registered twice")
        _REGISTRY[template_id] = func
        return func

    return decorator


def available_templates() -> list[str]:
    return sorted(_REGISTRY)


def _scalar(value: Any) -> str | None:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float, Path)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return None


def _flatten(prefix: str, values: Mapping[str, Any], result: dict[str, str]) -> None:
    for key, value in values.items():
        name = f"{prefix}{key}"
        if isinstance(value, BaseModel):
            _flatten(f"{name}_", {field: getattr(value, field) for field in type(value).model_fields}, result)
            continue
        if isinstance(value, Mapping):
            _flatten(f"{name}_", value, result)
            continue
        text = _scalar(value)
        if text is not None:
            result[name] = text


def template_variables(context: BuildContext) -> dict[str, str]:
    """Flat ``$name`` variables for user templates (``$mac_config_app_id`` etc.)."""

    task = context.task
    variables: dict[str, str] = {}
    _flatten("", {field: getattr(task, field) for field in type(task).model_fields}, variables)
    _flatten("", context.describe(), variables)
    for key, path in context.artifacts.items():
        variables[f"artifact_{key}"] = str(path)
    return variables


def render(template_id: str, output_file: Path, context: BuildContext) -> Path:
    """Render ``template_id`` into ``output_file``.

    A file ``<assets_dir>/<template_id>`` takes precedence and is filled with
    :class:`string.Template` substitution; otherwise the built-in renderer runs.
    """

    override = context.task.assets_dir / template_id
    if override.is_file():
        _LOGGER.info("Using custom template %s", override)
        text = string.Template(override.read_text(encoding="utf-8")).safe_substitute(
            template_variables(context)
        )
    else:
        renderer = _REGISTRY.get(template_id)
        if renderer is None:
            raise ConfigurationError(f"Template not found: {template_id}")
        text = renderer(context)

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(text, encoding="utf-8", newline="\n")
    _LOGGER.debug("Rendered %s into %s", template_id, output_file)
    return output_file


__all__ = ["Renderer", "available_templates", "render", "template", "template_variables"]
