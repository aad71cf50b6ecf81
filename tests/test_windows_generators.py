from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable

import pytest

from packager_core.config.models import PackagingTask
from packager_core.context import BuildContext
from packager_core.generators import GenerateMsi, GenerateMsm, GenerateSetup, generate_all
from packager_core.utils import files
from tests._tool_helpers import FakeTools, option_value, touch_option

WIX = "{http://schemas.microsoft.com/wix/2006/wi}"


@pytest.fixture
def windows_context(make_task: Callable[..., PackagingTask], tmp_path: Path) -> BuildContext:
    task = make_task(platform="windows", force_installer=True)
    task.apply_defaults()
    task.win_config.set_defaults(task)
    context = BuildContext(task=task)
    app_folder = files.mkdir(tmp_path, "target", "Demo")
    (app_folder / "Demo.cmd").write_text("@echo off\r\n", encoding="utf-8")
    (app_folder / "demo-1.0.jar").write_bytes(b"jar")
    files.mkdir(app_folder, "libs")
    (app_folder / "libs" / "dep.jar").write_bytes(b"dep")
    context.app_folder = app_folder
    context.assets_folder = files.mkdir(tmp_path, "target", "assets")
    context.executable = app_folder / "Demo.cmd"
    return context


@pytest.fixture
def wix(fake_tools: FakeTools) -> FakeTools:
    fake_tools.on("candle", touch_option("-out", b"wixobj"))
    fake_tools.on("light", touch_option("-out", b"installer"))
    return fake_tools


def test_msi_embeds_merge_module_built_once(windows_context: BuildContext, wix: FakeTools) -> None:
    windows_context.task.win_config.generate_msm = True

    artifacts = generate_all([GenerateMsm(), GenerateMsi()], windows_context)

    msm = windows_context.artifact_file("msm")
    msi = windows_context.artifact_file("msi")
    assert artifacts == [msm, msi]
    assert wix.names() == ["candle", "light", "candle", "light"]

    msi_light = wix.calls_to("light")[1]
    assert option_value(msi_light, "-b") == str(msm.parent)
    assert option_value(msi_light, "-out") == str(msi)
    assert "-b" not in wix.calls_to("light")[0]

    descriptor = ET.parse(windows_context.assets_folder / "Demo.msi.wxs").getroot()
    merge = descriptor.find(f".//{WIX}Merge")
    assert merge is not None and merge.get("SourceFile") == msm.name
    assert descriptor.find(f".//{WIX}MergeRef").get("Id") == "ApplicationModule"


def test_merge_module_is_listed_whenever_msi_is_generated(windows_context: BuildContext, wix: FakeTools) -> None:
    windows_context.task.win_config.generate_msm = False

    artifacts = generate_all([GenerateMsm(), GenerateMsi()], windows_context)

    assert artifacts == [windows_context.artifact_file("msm"), windows_context.artifact_file("msi")]
    assert windows_context.artifacts["msm"].exists()
    assert wix.names() == ["candle", "light", "candle", "light"]


def test_no_windows_installers_when_both_disabled(windows_context: BuildContext, wix: FakeTools) -> None:
    windows_context.task.win_config.generate_msm = False
    windows_context.task.win_config.generate_msi = False

    assert generate_all([GenerateMsm(), GenerateMsi()], windows_context) == []
    assert wix.calls == []


def test_merge_module_harvests_application_folder(windows_context: BuildContext, wix: FakeTools) -> None:
    GenerateMsm().apply(windows_context)

    descriptor = ET.parse(windows_context.assets_folder / "Demo.msm.wxs").getroot()
    sources = sorted(Path(item.get("Source")).name for item in descriptor.iter(f"{WIX}File"))
    assert sources == ["Demo.cmd", "demo-1.0.jar", "dep.jar"]
    libs = [item for item in descriptor.iter(f"{WIX}Directory") if item.get("Name") == "libs"]
    assert len(libs) == 1
    candle = wix.calls_to("candle")[0]
    assert option_value(candle, "-arch") == "x64"
    assert candle[-1] == str(windows_context.assets_folder / "Demo.msm.wxs")


def test_component_guids_are_stable(windows_context: BuildContext, wix: FakeTools) -> None:
    GenerateMsm().apply(windows_context)
    first = (windows_context.assets_folder / "Demo.msm.wxs").read_text(encoding="utf-8")
    windows_context.artifact_file("msm").unlink()

    GenerateMsm().apply(windows_context)

    assert (windows_context.assets_folder / "Demo.msm.wxs").read_text(encoding="utf-8") == first


def test_setup_runs_inno_setup(windows_context: BuildContext, fake_tools: FakeTools) -> None:
    def iscc(command: list[str]) -> None:
        folder = next(arg[2:] for arg in command if arg.startswith("/O"))
        stem = next(arg[2:] for arg in command if arg.startswith("/F"))
        (Path(folder) / f"{stem}.exe").write_bytes(b"setup")

    fake_tools.on("iscc", iscc)

    artifact = GenerateSetup().apply(windows_context)

    assert artifact == windows_context.output_directory / "Demo_1.0.exe"
    script = (windows_context.assets_folder / "Demo.iss").read_text(encoding="utf-8")
    assert "OutputBaseFilename=Demo_1.0" in script
    assert "PrivilegesRequired=lowest" in script


def test_signing_runs_after_linking(windows_context: BuildContext, wix: FakeTools, tmp_path: Path) -> None:
    certificate = tmp_path / "cert.pfx"
    certificate.write_bytes(b"pfx")
    config = windows_context.task.win_config
    config.sign = True
    config.certificate_file = certificate
    config.certificate_password = "secret"

    GenerateMsi().apply(windows_context)

    assert wix.names() == ["candle", "light", "candle", "light", "signtool"]
    assert wix.calls_to("signtool")[0][-1] == str(windows_context.artifact_file("msi"))
