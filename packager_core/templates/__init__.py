"""Descriptor and launcher templates rendered during packaging."""
from __future__ import annotations

from packager_core.templates import linux, mac, windows  # noqa: F401  (register built-ins)
from packager_core.templates.registry import (
    Renderer,
    available_templates,
    render,
    template,
    template_variables,
)

__all__ = ["Renderer", "available_templates", "render", "template", "template_variables"]
