"""Native packaging of Java applications: app bundles, bundled runtimes and installers."""

from __future__ import annotations

from .config import PackagingTask, load_task
from .context import BuildContext
from .driver import PackagerDriver
from .errors import (
    ConfigurationError,
    GenerationFailure,
    PackagerError,
    PackagerStateError,
    PostconditionFailure,
    ToolInvocationFailure,
)
from .platforms import Platform

__version__ = "0.1.0"

__all__ = [
    "BuildContext",
    "ConfigurationError",
    "GenerationFailure",
    "PackagerDriver",
    "PackagerError",
    "PackagerStateError",
    "PackagingTask",
    "Platform",
    "PostconditionFailure",
    "ToolInvocationFailure",
    "load_task",
    "__version__",
]
