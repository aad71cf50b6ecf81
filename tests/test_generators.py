from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pytest

from packager_core.config.models import PackagingTask
from packager_core.context import BuildContext
from packager_core.errors import GenerationFailure, PostconditionFailure
from packager_core.generators import (
    ArtifactGenerator,
    GenerateDeb,
    GenerateDmg,
    GeneratePkg,
    GenerateRpm,
    generate_all,
)
from packager_core.platforms import Platform
from packager_core.utils import commands, files
from tests._tool_helpers import FakeTools, option_value, touch_last


class StubGenerator(ArtifactGenerator):
    """Writes ``<name>_<version>.<extension>`` without any external tool."""

    def __init__(self, extension: str = "zip", *, produce: bool = True, active: bool = True) -> None:
        self.key = extension
        self.name = f"{extension.upper()} archive"
        self.extension = extension
        self.produce = produce
        self.active = active
        self.runs = 0

    def enabled(self, context: BuildContext) -> bool:
        return self.active

    def _generate(self, context: BuildContext) -> Path:
        self.runs += 1
        output = context.artifact_file(self.extension)
        if self.produce:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(b"artifact")
        return output


class ToolGenerator(StubGenerator):
    def _generate(self, context: BuildContext) -> Path:
        output = context.artifact_file(self.extension)
        commands.execute("makeself", output)
        return output


@pytest.fixture
def context(make_task: Callable[..., PackagingTask], tmp_path: Path) -> BuildContext:
    task = make_task()
    task.apply_defaults()
    context = BuildContext(task=task)
    context.app_folder = files.mkdir(tmp_path, "target", "Demo")
    context.assets_folder = files.mkdir(tmp_path, "target", "assets")
    return context


def test_output_path_is_deterministic(context: BuildContext, tmp_path: Path) -> None:
    artifact = StubGenerator("deb").apply(context)

    assert artifact == tmp_path / "target" / "Demo_1.0.deb"
    assert context.artifacts == {"deb": artifact}


def test_apply_is_memoized_across_instances(context: BuildContext) -> None:
    first = StubGenerator()
    second = StubGenerator()

    assert first.apply(context) == second.apply(context)
    assert first.runs == 1
    assert second.runs == 0


def test_removed_artifact_is_generated_again(context: BuildContext, caplog: pytest.LogCaptureFixture) -> None:
    generator = StubGenerator()
    artifact = generator.apply(context)
    artifact.unlink()

    with caplog.at_level(logging.WARNING):
        assert generator.apply(context) == artifact

    assert artifact.exists()
    assert generator.runs == 2
    assert "generating it again" in caplog.text


def test_disabled_generator_is_skipped(context: BuildContext) -> None:
    generator = StubGenerator(active=False)

    assert generate_all([generator], context) == []
    assert generator.runs == 0


def test_foreign_platform_is_skipped_unless_forced(
    context: BuildContext, linux_host: Callable[[Platform], None]
) -> None:
    linux_host(Platform.WINDOWS)
    generator = StubGenerator()

    assert generator.skip(context) is True
    context.task.force_installer = True
    assert generator.skip(context) is False


def test_missing_output_is_a_postcondition_failure(context: BuildContext) -> None:
    with pytest.raises(PostconditionFailure, match="Demo_1.0.zip doesn't exist"):
        StubGenerator(produce=False).apply(context)
    assert context.artifacts == {}


def test_tool_failure_becomes_generation_failure(context: BuildContext, fake_tools: FakeTools) -> None:
    fake_tools.fail("makeself", 3, "not enough space")

    with pytest.raises(GenerationFailure, match="not enough space") as raised:
        ToolGenerator("run").apply(context)

    assert raised.value.__cause__.returncode == 3


def test_first_failure_stops_the_sweep(context: BuildContext) -> None:
    first = StubGenerator("deb")
    broken = StubGenerator("rpm", produce=False)
    never = StubGenerator("tgz")

    with pytest.raises(PostconditionFailure):
        generate_all([first, broken, never], context)

    assert context.artifact_file("deb").exists()
    assert never.runs == 0
    assert list(context.artifacts) == ["deb"]


# -- linux packages --------------------------------------------------------
@pytest.fixture
def linux_context(context: BuildContext) -> BuildContext:
    context.task.linux_config.set_defaults(context.task)
    app_folder = context.app_folder
    (app_folder / "Demo").write_text("#!/usr/bin/env bash\n", encoding="utf-8")
    (app_folder / "demo-1.0.jar").write_bytes(b"jar")
    (app_folder / "Demo.desktop").write_text("[Desktop Entry]\n", encoding="utf-8")
    return context


def test_deb_is_built_from_staging_folder(linux_context: BuildContext, fake_tools: FakeTools) -> None:
    fake_tools.on("dpkg-deb", touch_last())

    artifact = GenerateDeb().apply(linux_context)

    (command,) = fake_tools.calls
    staging = Path(command[-2])
    assert command[:3] == ["dpkg-deb", "--build", "--root-owner-group"]
    assert artifact == linux_context.artifact_file("deb")
    assert staging == linux_context.assets_folder / "deb" / "demo"
    assert (staging / "opt" / "Demo" / "demo-1.0.jar").is_file()
    assert (staging / "usr" / "share" / "applications" / "Demo.desktop").is_file()
    control = (staging / "DEBIAN" / "control").read_text(encoding="utf-8")
    assert "Package: demo" in control
    assert "Version: 1.0" in control


def test_rpm_is_moved_to_output(linux_context: BuildContext, fake_tools: FakeTools) -> None:
    def rpmbuild(command: list[str]) -> None:
        rpmdir = Path(command[command.index("--define", 3) + 1].split(" ", 1)[1])
        (rpmdir / "x86_64").mkdir(parents=True)
        (rpmdir / "x86_64" / "demo-1.0-1.x86_64.rpm").write_bytes(b"rpm")

    fake_tools.on("rpmbuild", rpmbuild)

    artifact = GenerateRpm().apply(linux_context)

    assert artifact == linux_context.artifact_file("rpm")
    assert artifact.read_bytes() == b"rpm"
    spec = Path(fake_tools.calls[0][-1])
    assert spec.name == "Demo.spec"
    assert option_value(fake_tools.calls[0], "--define") == f"_topdir {linux_context.assets_folder / 'rpmbuild'}"


def test_rpm_without_package_fails(linux_context: BuildContext, fake_tools: FakeTools) -> None:
    with pytest.raises(PostconditionFailure, match="no package"):
        GenerateRpm().apply(linux_context)


# -- macOS images -------------------------------------------------------------
@pytest.fixture
def mac_context(make_task: Callable[..., PackagingTask], tmp_path: Path) -> BuildContext:
    task = make_task(platform="mac", force_installer=True)
    task.apply_defaults()
    task.mac_config.set_defaults(task)
    context = BuildContext(task=task)
    context.app_folder = files.mkdir(tmp_path, "target", "Demo")
    context.assets_folder = files.mkdir(tmp_path, "target", "assets")
    context.app_file = files.mkdir(context.app_folder, "Demo.app")
    files.mkdir(context.app_file, "Contents")
    return context


def test_dmg_contains_app_and_applications_link(mac_context: BuildContext, fake_tools: FakeTools) -> None:
    fake_tools.on("hdiutil", touch_last())

    artifact = GenerateDmg().apply(mac_context)

    (command,) = fake_tools.calls
    staging = Path(option_value(command, "-srcfolder"))
    assert artifact == mac_context.artifact_file("dmg")
    assert option_value(command, "-volname") == "Demo"
    assert (staging / "Demo.app" / "Contents").is_dir()
    assert (staging / "Applications").is_symlink()


def test_pkg_installs_into_applications(mac_context: BuildContext, fake_tools: FakeTools) -> None:
    fake_tools.on("pkgbuild", touch_last())

    GeneratePkg().apply(mac_context)

    (command,) = fake_tools.calls
    assert option_value(command, "--install-location") == "/Applications"
    assert option_value(command, "--identifier") == "acme.demo"
    assert option_value(command, "--component") == str(mac_context.app_file)
