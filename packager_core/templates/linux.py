"""Built-in Linux templates."""
from __future__ import annotations

import platform
from pathlib import Path

from packager_core.context import BuildContext
from packager_core.templates.helpers import (
    classpath_entries,
    elevated_launcher_name,
    relative,
    runtime_bundled,
    sh,
)
from packager_core.templates.registry import template

_DEB_ARCHITECTURES = {"x86_64": "amd64", "aarch64": "arm64"}


def install_folder(context: BuildContext) -> str:
    """Absolute folder the packages install the application into."""

    config = context.task.linux_config
    return f"{config.install_path.rstrip('/')}/{context.name}"


@template("linux/startup.sh")
def startup(context: BuildContext) -> str:
    task = context.task
    app_folder: Path = context.require("app_folder")

    lines = [
        "#!/usr/bin/env bash",
        'SCRIPTPATH="$(cd "$(dirname "$(readlink -f "$0")")" && pwd)"',
    ]
    if task.env_path:
        lines.append(f'export PATH={sh(task.env_path)}:"$PATH"')
    if task.use_resources_as_working_dir:
        lines.append('cd "$SCRIPTPATH" || exit 1')

    if runtime_bundled(context):
        runtime = relative(context.require("jre_destination_folder"), app_folder)
        lines.append(f'JAVA="$SCRIPTPATH/{runtime}/bin/java"')
    else:
        lines.append('JAVA="${JAVA_HOME:+$JAVA_HOME/bin/}java"')

    vm_args = " ".join(sh(arg) for arg in task.vm_args)
    if task.main_class:
        prefix = "" if task.use_resources_as_working_dir else "$SCRIPTPATH/"
        classpath = ":".join(prefix + entry for entry in classpath_entries(context))
        command = f'exec "$JAVA" {vm_args} -cp "{classpath}" {task.main_class} "$@"'
    else:
        jar_folder: Path = context.require("jar_file_destination_folder")
        jar = relative(jar_folder / context.require("jar_file").name, app_folder)
        command = f'exec "$JAVA" {vm_args} -jar "$SCRIPTPATH/{jar}" "$@"'
    lines.append(" ".join(command.split()))
    lines.append("")
    return "\n".join(lines)


@template("linux/admin-startup.sh")
def admin_startup(context: BuildContext) -> str:
    launcher = elevated_launcher_name(context.name)
    return "\n".join(
        [
            "#!/usr/bin/env bash",
            "# Restarts the launcher as root through polkit.",
            'SCRIPTPATH="$(cd "$(dirname "$(readlink -f "$0")")" && pwd)"',
            'exec pkexec env DISPLAY="$DISPLAY" XAUTHORITY="$XAUTHORITY" '
            f'"$SCRIPTPATH/{launcher}" "$@"',
            "",
        ]
    )


@template("linux/desktop")
def desktop_entry(context: BuildContext) -> str:
    task = context.task
    folder = install_folder(context)
    icon: Path = context.require("icon_file")
    categories = "".join(f"{category};" for category in task.linux_config.categories)
    lines = [
        "[Desktop Entry]",
        "Type=Application",
        "Version=1.0",
        f"Name={task.display_name}",
        f"Comment={task.description}",
        f"Exec={folder}/{context.require('executable').name}",
        f"Icon={folder}/{icon.name}",
        f"Path={folder}",
        "Terminal=false",
        f"Categories={categories}",
        "",
    ]
    return "\n".join(lines)


def deb_architecture(context: BuildContext) -> str:
    if not runtime_bundled(context):
        return "all"

    machine = platform.machine().lower()
    return _DEB_ARCHITECTURES.get(machine, machine or "all")


@template("linux/control")
def control(context: BuildContext) -> str:
    task = context.task
    config = task.linux_config
    description = (task.description or task.display_name or "").strip().replace("\n", "\n ")
    lines = [
        f"Package: {config.package_name}",
        f"Version: {task.version}",
        "Section: misc",
        "Priority: optional",
        f"Architecture: {deb_architecture(context)}",
        f"Maintainer: {config.maintainer}",
        f"Description: {description}",
    ]
    if task.url:
        lines.append(f"Homepage: {task.url}")
    lines.append("")
    return "\n".join(lines)


@template("linux/rpm.spec")
def rpm_spec(context: BuildContext) -> str:
    task = context.task
    config = task.linux_config
    app_folder: Path = context.require("app_folder")
    folder = install_folder(context)
    version = task.version.replace("-", "_")
    lines = [
        f"Name: {config.package_name}",
        f"Version: {version}",
        "Release: 1",
        f"Summary: {task.description}",
        f"License: {task.license_name or 'Unknown'}",
        f"Vendor: {task.organization_name}",
        f"Packager: {config.maintainer}",
        "AutoReqProv: no",
    ]
    if task.url:
        lines.append(f"URL: {task.url}")
    if not runtime_bundled(context):
        lines.append("BuildArch: noarch")
    lines.extend(
        [
            "",
            "%define __jar_repack %{nil}",
            "%define _build_id_links none",
            "",
            "%description",
            f"{task.description}",
            "",
            "%install",
            f"mkdir -p %{{buildroot}}{folder} %{{buildroot}}/usr/share/applications",
            f"cp -a {sh(str(app_folder))}/. %{{buildroot}}{folder}/",
            f"cp {sh(str(app_folder / f'{context.name}.desktop'))} %{{buildroot}}/usr/share/applications/",
            "",
            "%files",
            folder,
            f"/usr/share/applications/{context.name}.desktop",
            "",
        ]
    )
    return "\n".join(lines)
