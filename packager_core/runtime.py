"""Embedding a Java runtime in the application (explicit copy or ``jlink`` image)."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence

from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError
from packager_core.toolchain import JavaToolchain
from packager_core.utils import commands, files

_LOGGER = logging.getLogger(__name__)

ALL_MODULE_PATH = "ALL-MODULE-PATH"
LEGACY_TOOLCHAIN_MAX_VERSION = 8
LIST_DEPS_MIN_VERSION = 9
PRINT_MODULE_DEPS_MIN_VERSION = 13
_REMOVED_INTERNAL_MARKER = "JDK removed internal"


def _library_jars(libs_folder: Path | None) -> list[Path]:
    if libs_folder is None or not libs_folder.exists():
        _LOGGER.warning("No dependencies found!")
        return []
    return sorted(libs_folder.glob("*.jar"))


def _parse_print_module_deps(output: str) -> list[str]:
    return [module.strip() for module in output.split(",") if module.strip()]


def _parse_list_deps(output: str) -> list[str]:
    modules: list[str] = []
    for line in output.splitlines():
        module = line.strip().split("/", 1)[0].strip()
        if not module or module.startswith(_REMOVED_INTERNAL_MARKER):
            continue
        if module not in modules:
            modules.append(module)
    return modules


def resolve_modules(
    libs_folder: Path | None,
    jar_file: Path,
    default_modules: Sequence[str],
    additional_modules: Iterable[str],
    toolchain: JavaToolchain,
    *,
    customized: bool = True,
) -> list[str]:
    """Modules to put in the runtime image, most specific source first.

    A configured default list wins; otherwise ``jdeps`` is asked (print-module-deps
    on JDK 13+, list-deps on 9-12); otherwise every module on the module path.
    Additional modules are always appended.
    """

    _LOGGER.info("Getting required modules ...")
    major = toolchain.major_version

    if customized and default_modules:
        modules = [module.strip() for module in default_modules]
    elif customized and major >= PRINT_MODULE_DEPS_MIN_VERSION:
        output = commands.execute(
            toolchain.tool("jdeps"),
            "-q",
            "--multi-release",
            major,
            "--ignore-missing-deps",
            "--print-module-deps",
            _library_jars(libs_folder),
            jar_file,
        )
        modules = _parse_print_module_deps(output)
    elif customized and major >= LIST_DEPS_MIN_VERSION:
        output = commands.execute(
            toolchain.tool("jdeps"),
            "-q",
            "--multi-release",
            major,
            "--list-deps",
            _library_jars(libs_folder),
            jar_file,
        )
        modules = _parse_list_deps(output)
    else:
        modules = [ALL_MODULE_PATH]

    modules.extend(module.strip() for module in additional_modules if module.strip())

    if not modules:
        _LOGGER.warning("It was not possible to determine the necessary modules. All modules will be included")
        modules.append(ALL_MODULE_PATH)

    _LOGGER.info("Required modules found: %s", modules)
    return modules


def _same_folder(left: Path | None, right: Path) -> bool:
    if left is None:
        return True
    try:
        return left.resolve() == right.resolve()
    except OSError:  # pragma: no cover - broken symlinks
        return left == right


def _make_binaries_executable(runtime_folder: Path) -> Path:
    bin_folder = runtime_folder / "bin"
    if bin_folder.is_dir():
        files.set_folder_executable(bin_folder)
    return bin_folder


def bundle_runtime(context: BuildContext, toolchain: JavaToolchain) -> Path | None:
    """Place a runtime in ``context.jre_destination_folder``; returns it, or ``None`` when skipped."""

    task = context.task
    if not task.bundle_jre:
        _LOGGER.warning("Bundling JRE disabled by property 'bundle_jre'!")
        context.runtime_bundled = False
        return None

    destination: Path = context.require("jre_destination_folder")
    _LOGGER.info("Bundling JRE ... with %s", toolchain.home)
    bundled = True

    if task.jre_path is not None:
        source = task.jre_path
        _LOGGER.info("Embedding JRE from %s", source)
        if not source.exists():
            raise ConfigurationError(f"JRE path specified does not exist: {source}")
        if not source.is_dir():
            raise ConfigurationError(f"JRE path specified is not a folder: {source}")

        files.remove_folder(destination)
        files.copy_folder_content_to_folder(source, destination)

        bin_folder = destination / "bin"
        if not bin_folder.is_dir():
            raise ConfigurationError(f"Could not embed JRE from {source}: {bin_folder} doesn't exist")
        _make_binaries_executable(destination)

    elif task.customized_jre and toolchain.major_version <= LEGACY_TOOLCHAIN_MAX_VERSION:
        raise ConfigurationError(
            f"Could not create a customized JRE due to JDK version is {toolchain.version}. "
            "Use the 'jre_path' property to specify the JRE to be embedded"
        )

    elif not task.platform.is_current() and _same_folder(task.jdk_path, toolchain.home):
        _LOGGER.warning(
            "Cannot create a customized JRE ... target platform (%s) is different than execution "
            "platform. Use the 'jdk_path' property.",
            task.platform.value,
        )
        task.bundle_jre = False
        bundled = False

    else:
        jar_file: Path = context.require("jar_file")
        modules = resolve_modules(
            context.libs_folder,
            jar_file,
            task.modules,
            task.additional_modules,
            toolchain,
            customized=task.customized_jre,
        )
        _LOGGER.info("Creating JRE with next modules included: %s", ",".join(modules))

        jdk_home = task.jdk_path or toolchain.home
        modules_dir = jdk_home / "jmods"
        if not modules_dir.exists():
            raise ConfigurationError(f"jmods folder doesn't exist: {modules_dir}")
        _LOGGER.info("Using %s modules directory", modules_dir)

        files.remove_folder(destination)
        commands.execute(
            toolchain.tool("jlink"),
            "--module-path",
            modules_dir,
            "--add-modules",
            ",".join(modules),
            "--output",
            destination,
            "--no-header-files",
            "--no-man-pages",
            "--strip-debug",
            "--compress=2",
        )
        _make_binaries_executable(destination)

    legal_folder = destination / "legal"
    if legal_folder.exists():
        files.remove_folder(legal_folder)

    context.runtime_bundled = bundled
    if bundled:
        _LOGGER.info("JRE bundled in %s!", destination)
        return destination
    _LOGGER.info("JRE bundling skipped!")
    return None


__all__ = [
    "ALL_MODULE_PATH",
    "LEGACY_TOOLCHAIN_MAX_VERSION",
    "bundle_runtime",
    "resolve_modules",
]
