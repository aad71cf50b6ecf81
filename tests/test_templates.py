from __future__ import annotations

from pathlib import Path

import pytest

from packager_core.context import BuildContext
from packager_core.errors import ConfigurationError
from packager_core.templates import available_templates, render, template, template_variables
from packager_core.templates.helpers import stable_guid, stable_id


@pytest.fixture
def context(make_task, tmp_path: Path) -> BuildContext:
    task = make_task(description="Demo application")
    task.apply_defaults()
    task.linux_config.set_defaults(task)
    context = BuildContext(task=task)
    context.app_folder = tmp_path / "target" / "Demo"
    return context


def test_built_in_templates() -> None:
    assert available_templates() == [
        "linux/admin-startup.sh",
        "linux/control",
        "linux/desktop",
        "linux/rpm.spec",
        "linux/startup.sh",
        "mac/Info.plist",
        "mac/entitlements.plist",
        "mac/startup",
        "windows/app.manifest",
        "windows/iss",
        "windows/launcher.cmd",
        "windows/msi.wxs",
        "windows/msm.wxs",
        "windows/startup.cmd",
    ]


def test_unknown_template(context: BuildContext, tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Template not found: linux/snap.yaml"):
        render("linux/snap.yaml", tmp_path / "snap.yaml", context)


def test_template_ids_are_unique() -> None:
    with pytest.raises(ValueError, match="registered twice"):
        template("linux/control")(lambda context: "")


def test_user_template_overrides_built_in(context: BuildContext, tmp_path: Path) -> None:
    override = tmp_path / "assets" / "linux" / "control"
    override.parent.mkdir(parents=True)
    override.write_text(
        "Package: $linux_config_package_name\nVersion: ${version}\nDepends: $custom_depends\n", encoding="utf-8"
    )

    output = render("linux/control", tmp_path / "out" / "control", context)

    assert output.read_text(encoding="utf-8") == "Package: demo\nVersion: 1.0\nDepends: $custom_depends\n"


def test_built_in_control_file(context: BuildContext, tmp_path: Path) -> None:
    control = render("linux/control", tmp_path / "control", context).read_text(encoding="utf-8")

    assert control.splitlines() == [
        "Package: demo",
        "Version: 1.0",
        "Section: misc",
        "Priority: optional",
        "Architecture: all",
        "Maintainer: ACME <info@acme.com>",
        "Description: Demo application",
    ]


def test_variables_flatten_task_and_context(context: BuildContext, tmp_path: Path) -> None:
    context.artifacts["deb"] = tmp_path / "Demo_1.0.deb"

    variables = template_variables(context)

    assert variables["name"] == "Demo"
    assert variables["platform"] == "linux"
    assert variables["bundle_jre"] == "false"
    assert variables["linux_config_categories"] == "Utility"
    assert variables["app_folder"] == str(tmp_path / "target" / "Demo")
    assert variables["executable"] == ""
    assert variables["artifact_deb"] == str(tmp_path / "Demo_1.0.deb")


def test_stable_identifiers() -> None:
    assert stable_guid("seed", "a/b") == stable_guid("seed", "a/b")
    assert stable_guid("seed", "a/b") != stable_guid("seed", "a/c")
    assert stable_guid("seed").isupper()
    identifier = stable_id("cmp", "seed", "libs/dep.jar")
    assert identifier.startswith("cmp_") and len(identifier) <= 72
    assert identifier.replace("_", "").isalnum()
