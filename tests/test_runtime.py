from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pytest

from packager_core.config.models import PackagingTask
from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError, ToolInvocationFailure
from packager_core.runtime import ALL_MODULE_PATH, bundle_runtime, resolve_modules
from packager_core.toolchain import JavaToolchain, parse_major_version
from tests._tool_helpers import FakeTools, fake_jlink, make_jdk, option_value


# -- module resolution -------------------------------------------------------
@pytest.mark.parametrize("version", ["1.8.0_292", "11.0.2", "17.0.2"])
def test_default_modules_win_regardless_of_version(tmp_path: Path, fake_tools: FakeTools, version: str) -> None:
    toolchain = JavaToolchain(home=tmp_path, version=version)

    modules = resolve_modules(None, tmp_path / "app.jar", [" java.base ", "java.sql"], ["jdk.crypto.ec"], toolchain)

    assert modules == ["java.base", "java.sql", "jdk.crypto.ec"]
    assert fake_tools.calls == []


def test_not_customized_uses_all_modules(tmp_path: Path, fake_tools: FakeTools, toolchain: JavaToolchain) -> None:
    modules = resolve_modules(None, tmp_path / "app.jar", ["java.base"], ["jdk.localedata"], toolchain, customized=False)

    assert modules == [ALL_MODULE_PATH, "jdk.localedata"]
    assert fake_tools.calls == []


def test_modern_toolchain_prints_module_deps(tmp_path: Path, fake_tools: FakeTools, toolchain: JavaToolchain) -> None:
    libs = tmp_path / "libs"
    libs.mkdir()
    (libs / "b.jar").write_bytes(b"")
    (libs / "a.jar").write_bytes(b"")
    fake_tools.on("jdeps", lambda command: "java.base,java.desktop, java.sql\n")

    modules = resolve_modules(libs, tmp_path / "app.jar", [], [], toolchain)

    assert modules == ["java.base", "java.desktop", "java.sql"]
    (command,) = fake_tools.calls_to("jdeps")
    assert option_value(command, "--multi-release") == "17"
    assert "--ignore-missing-deps" in command and "--print-module-deps" in command
    assert command[-3:] == [str(libs / "a.jar"), str(libs / "b.jar"), str(tmp_path / "app.jar")]


def test_legacy_toolchain_lists_deps(tmp_path: Path, fake_tools: FakeTools) -> None:
    toolchain = JavaToolchain(home=tmp_path, version="11.0.12")
    fake_tools.on(
        "jdeps",
        lambda command: "   java.base\n   java.logging/sun.util.logging\n\n"
        "   JDK removed internal API/sun.misc.BASE64Encoder\n   java.base/jdk.internal\n",
    )

    modules = resolve_modules(None, tmp_path / "app.jar", [], ["jdk.zipfs"], toolchain)

    assert modules == ["java.base", "java.logging", "jdk.zipfs"]
    assert "--list-deps" in fake_tools.calls[0]


def test_empty_result_falls_back_to_all_modules(
    tmp_path: Path, fake_tools: FakeTools, toolchain: JavaToolchain, caplog: pytest.LogCaptureFixture
) -> None:
    fake_tools.on("jdeps", lambda command: "\n")

    with caplog.at_level(logging.WARNING):
        modules = resolve_modules(None, tmp_path / "app.jar", [], [], toolchain)

    assert modules == [ALL_MODULE_PATH]
    assert "All modules will be included" in caplog.text


def test_parse_major_version() -> None:
    assert parse_major_version("1.8.0_292") == 8
    assert parse_major_version("17.0.2+8") == 17
    assert parse_major_version("21") == 21
    with pytest.raises(ConfigurationError):
        parse_major_version("latest")


# -- runtime bundling -----------------------------------------------------------
def _context(task: PackagingTask, tmp_path: Path, jar_file: Path) -> BuildContext:
    task.apply_defaults()
    context = BuildContext(task=task)
    context.jre_destination_folder = tmp_path / "target" / "Demo" / "jre"
    context.jar_file = jar_file
    return context


def test_bundling_disabled_is_skipped(
    tmp_path: Path, make_task: Callable[..., PackagingTask], jar_file: Path, toolchain: JavaToolchain, fake_tools: FakeTools
) -> None:
    context = _context(make_task(bundle_jre=False), tmp_path, jar_file)

    assert bundle_runtime(context, toolchain) is None
    assert context.runtime_bundled is False
    assert fake_tools.calls == []


def test_missing_explicit_runtime_fails_without_touching_destination(
    tmp_path: Path, make_task: Callable[..., PackagingTask], jar_file: Path, toolchain: JavaToolchain
) -> None:
    context = _context(make_task(bundle_jre=True, jre_path=tmp_path / "missing-jre"), tmp_path, jar_file)
    destination = context.jre_destination_folder
    destination.mkdir(parents=True)
    (destination / "marker").write_text("keep", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="does not exist"):
        bundle_runtime(context, toolchain)

    assert (destination / "marker").read_text(encoding="utf-8") == "keep"
    assert context.runtime_bundled is None


def test_explicit_runtime_is_copied(
    tmp_path: Path, make_task: Callable[..., PackagingTask], jar_file: Path, toolchain: JavaToolchain, fake_tools: FakeTools
) -> None:
    source = tmp_path / "custom-jre"
    (source / "bin").mkdir(parents=True)
    (source / "bin" / "java").write_text("#!/bin/sh\n", encoding="utf-8")
    (source / "legal").mkdir()
    context = _context(make_task(bundle_jre=True, jre_path=source), tmp_path, jar_file)
    stale = context.jre_destination_folder / "stale.txt"
    stale.parent.mkdir(parents=True)
    stale.write_text("old", encoding="utf-8")

    destination = bundle_runtime(context, toolchain)

    assert destination == context.jre_destination_folder
    assert (destination / "bin" / "java").stat().st_mode & 0o111
    assert not stale.exists()
    assert not (destination / "legal").exists()
    assert context.runtime_bundled is True
    assert fake_tools.calls == []


def test_explicit_runtime_without_bin_fails(
    tmp_path: Path, make_task: Callable[..., PackagingTask], jar_file: Path, toolchain: JavaToolchain
) -> None:
    source = tmp_path / "broken-jre"
    (source / "lib").mkdir(parents=True)
    context = _context(make_task(bundle_jre=True, jre_path=source), tmp_path, jar_file)

    with pytest.raises(ConfigurationError, match="doesn't exist"):
        bundle_runtime(context, toolchain)


@pytest.mark.parametrize("platform", ["linux", "windows", "mac"])
@pytest.mark.parametrize("modules", [[], ["java.base"]])
def test_customized_runtime_on_legacy_toolchain_always_fails(
    tmp_path: Path,
    make_task: Callable[..., PackagingTask],
    jar_file: Path,
    fake_tools: FakeTools,
    platform: str,
    modules: list[str],
) -> None:
    legacy = JavaToolchain(home=make_jdk(tmp_path / "jdk8", "1.8.0_292"), version="1.8.0_292")
    context = _context(make_task(bundle_jre=True, platform=platform, modules=modules), tmp_path, jar_file)

    with pytest.raises(ConfigurationError, match="JDK version is 1.8.0_292"):
        bundle_runtime(context, legacy)
    assert fake_tools.calls == []


def test_cross_platform_without_foreign_jdk_skips_bundling(
    tmp_path: Path,
    make_task: Callable[..., PackagingTask],
    jar_file: Path,
    toolchain: JavaToolchain,
    fake_tools: FakeTools,
    caplog: pytest.LogCaptureFixture,
) -> None:
    context = _context(make_task(bundle_jre=True, platform="windows"), tmp_path, jar_file)

    with caplog.at_level(logging.WARNING):
        assert bundle_runtime(context, toolchain) is None

    assert context.task.bundle_jre is False
    assert context.runtime_bundled is False
    assert "jdk_path" in caplog.text
    assert fake_tools.calls == []


def test_jlink_creates_trimmed_runtime(
    tmp_path: Path, make_task: Callable[..., PackagingTask], jar_file: Path, toolchain: JavaToolchain, fake_tools: FakeTools
) -> None:
    fake_tools.on("jdeps", lambda command: "java.base,java.logging")
    fake_tools.on("jlink", fake_jlink)
    context = _context(make_task(bundle_jre=True, additional_modules=["jdk.crypto.ec"]), tmp_path, jar_file)

    destination = bundle_runtime(context, toolchain)

    assert fake_tools.names() == ["jdeps", "jlink"]
    jlink = fake_tools.calls_to("jlink")[0]
    assert option_value(jlink, "--module-path") == str(toolchain.home / "jmods")
    assert option_value(jlink, "--add-modules") == "java.base,java.logging,jdk.crypto.ec"
    assert option_value(jlink, "--output") == str(destination)
    for flag in ("--no-header-files", "--no-man-pages", "--strip-debug", "--compress=2"):
        assert flag in jlink
    assert (destination / "bin" / "java").stat().st_mode & 0o111
    assert not (destination / "legal").exists()
    assert context.runtime_bundled is True


def test_cross_platform_with_foreign_jdk_uses_its_jmods(
    tmp_path: Path, make_task: Callable[..., PackagingTask], jar_file: Path, toolchain: JavaToolchain, fake_tools: FakeTools
) -> None:
    windows_jdk = make_jdk(tmp_path / "windows-jdk")
    fake_tools.on("jlink", fake_jlink)
    context = _context(
        make_task(bundle_jre=True, platform="windows", jdk_path=windows_jdk, modules=["java.base"]), tmp_path, jar_file
    )

    bundle_runtime(context, toolchain)

    assert option_value(fake_tools.calls_to("jlink")[0], "--module-path") == str(windows_jdk / "jmods")


def test_jlink_failure_propagates(
    tmp_path: Path, make_task: Callable[..., PackagingTask], jar_file: Path, toolchain: JavaToolchain, fake_tools: FakeTools
) -> None:
    fake_tools.fail("jlink", 2, "Error: module not found: java.bogus")
    context = _context(make_task(bundle_jre=True, modules=["java.bogus"]), tmp_path, jar_file)

    with pytest.raises(ToolInvocationFailure, match="java.bogus"):
        bundle_runtime(context, toolchain)
