"""Built-in macOS templates."""
from __future__ import annotations

from packager_core.context import BuildContext
from packager_core.templates.helpers import relative, runtime_bundled, xml_text
from packager_core.templates.registry import template

STUB_NAME = "universalJavaApplicationStub"

_PLIST_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
    '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
)


def _entry(key: str, value: object) -> str:
    return f"<key>{xml_text(key)}</key><string>{xml_text(value)}</string>"


@template("mac/Info.plist")
def info_plist(context: BuildContext) -> str:
    task = context.task
    config = task.mac_config
    resources = context.require("resources_destination_folder")
    jar_folder = context.require("jar_file_destination_folder")
    jar_file = context.require("jar_file")

    lines = [
        _PLIST_HEADER + '<plist version="1.0">',
        "<dict>",
        _entry("CFBundleDevelopmentRegion", "English"),
        _entry("CFBundleExecutable", context.require("executable").name),
        _entry("CFBundleIconFile", context.require("icon_file").name),
        _entry("CFBundleIdentifier", config.app_id),
        _entry("CFBundleDisplayName", task.display_name),
        _entry("CFBundleInfoDictionaryVersion", "6.0"),
        _entry("CFBundleName", task.name),
        _entry("CFBundlePackageType", "APPL"),
        _entry("CFBundleShortVersionString", task.version),
        _entry("CFBundleVersion", task.version),
        _entry("CFBundleSignature", "????"),
        _entry("NSHumanReadableCopyright", task.organization_name),
        "<key>NSHighResolutionCapable</key><true/>",
        "<key>JavaX</key>",
        "<dict>",
    ]
    if task.main_class:
        lines.append(_entry("MainClass", task.main_class))
    lines.append(_entry("JarFile", relative(jar_folder / jar_file.name, resources)))
    lines.append(_entry("ClassPath", context.classpath or ""))
    if runtime_bundled(context):
        lines.append(_entry("Runtime", task.jre_directory_name))
    lines.append("<key>JVMOptions</key>")
    if task.vm_args:
        lines.append("<array>")
        lines.extend(f"<string>{xml_text(arg)}</string>" for arg in task.vm_args)
        lines.append("</array>")
    else:
        lines.append("<array/>")
    lines.extend(["</dict>", "</dict>", "</plist>", ""])
    return "\n".join(lines)


@template("mac/startup")
def admin_startup(context: BuildContext) -> str:
    return "\n".join(
        [
            "#!/bin/bash",
            "# Restarts the bundle launcher with administrator privileges.",
            'SCRIPTPATH="$(cd "$(dirname "$0")" && pwd)"',
            f"LAUNCHER=\"$SCRIPTPATH/{STUB_NAME}\"",
            'osascript -e "do shell script \\"\'$LAUNCHER\' > /dev/null 2>&1 &\\" '
            f'with prompt \\"{context.task.display_name} requires administrator privileges\\" '
            'with administrator privileges"',
            "",
        ]
    )


_JVM_ENTITLEMENTS = (
    "com.apple.security.cs.allow-jit",
    "com.apple.security.cs.allow-unsigned-executable-memory",
    "com.apple.security.cs.disable-library-validation",
    "com.apple.security.cs.allow-dyld-environment-variables",
)


@template("mac/entitlements.plist")
def entitlements(context: BuildContext) -> str:
    lines = [_PLIST_HEADER + '<plist version="1.0">', "<dict>"]
    lines.extend(f"<key>{key}</key><true/>" for key in _JVM_ENTITLEMENTS)
    lines.extend(["</dict>", "</plist>", ""])
    return "\n".join(lines)
