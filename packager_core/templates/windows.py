"""Built-in Windows templates: launcher scripts, manifest, WiX and Inno Setup sources."""
from __future__ import annotations

from pathlib import Path

from packager_core.context import BuildContext
from packager_core.templates.helpers import (
    classpath_entries,
    elevated_launcher_name,
    runtime_bundled,
    stable_guid,
    stable_id,
    windows_relative,
    xml_attr,
    xml_text,
)
from packager_core.templates.registry import template

_WIX_NAMESPACE = "http://schemas.microsoft.com/wix/2006/wi"


def _cmd_lines(lines: list[str]) -> str:
    return "\r\n".join(lines) + "\r\n"


@template("windows/app.manifest")
def app_manifest(context: BuildContext) -> str:
    task = context.task
    level = "requireAdministrator" if task.administrator_required else "asInvoker"
    identity = f"{task.organization_name}.{task.name}".replace(" ", "")
    lines = [
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>',
        '<assembly xmlns="urn:schemas-microsoft-com:asm.v1" manifestVersion="1.0">',
        f'<assemblyIdentity type="win32" name={xml_attr(identity)} '
        f'version={xml_attr(task.win_config.file_version)} processorArchitecture="*"/>',
    ]
    if task.description:
        lines.append(f"<description>{xml_text(task.description)}</description>")
    lines.extend(
        [
            '<trustInfo xmlns="urn:schemas-microsoft-com:asm.v3">',
            "<security><requestedPrivileges>",
            f'<requestedExecutionLevel level="{level}" uiAccess="false"/>',
            "</requestedPrivileges></security>",
            "</trustInfo>",
            '<application xmlns="urn:schemas-microsoft-com:asm.v3">',
            "<windowsSettings>",
            '<dpiAware xmlns="http://schemas.microsoft.com/SMI/2005/WindowsSettings">true</dpiAware>',
            "</windowsSettings>",
            "</application>",
            "</assembly>",
            "",
        ]
    )
    return "\n".join(lines)


@template("windows/startup.cmd")
def elevation_helper(context: BuildContext) -> str:
    launcher = elevated_launcher_name(context.task.name, ".cmd")
    return _cmd_lines(
        [
            "@echo off",
            "rem Restarts the launcher with administrator privileges.",
            'powershell -NoProfile -ExecutionPolicy Bypass -Command '
            f"\"Start-Process -FilePath '%~dp0{launcher}' -Verb RunAs -WorkingDirectory '%~dp0'\"",
        ]
    )


def _windows_classpath(context: BuildContext, prefix: str) -> str:
    return ";".join(prefix + entry.replace("/", "\\") for entry in classpath_entries(context))


@template("windows/launcher.cmd")
def script_launcher(context: BuildContext) -> str:
    task = context.task
    app_folder: Path = context.require("app_folder")
    prefix = "" if task.use_resources_as_working_dir else "%APP_DIR%"

    lines = ["@echo off", "setlocal", 'set "APP_DIR=%~dp0"']
    if task.env_path:
        lines.append(f'set "PATH={task.env_path};%PATH%"')
    if task.use_resources_as_working_dir:
        lines.append('cd /d "%APP_DIR%"')

    if runtime_bundled(context):
        runtime = windows_relative(context.require("jre_destination_folder"), app_folder)
        lines.append(f'set "JAVA=%APP_DIR%{runtime}\\bin\\java.exe"')
    else:
        lines.extend(
            [
                'set "JAVA=java.exe"',
                'if defined JAVA_HOME set "JAVA=%JAVA_HOME%\\bin\\java.exe"',
            ]
        )

    vm_args = " ".join(task.vm_args)
    if task.main_class:
        command = f'"%JAVA%" {vm_args} -cp "{_windows_classpath(context, prefix)}" {task.main_class} %*'
    else:
        jar = windows_relative(
            context.require("jar_file_destination_folder") / context.require("jar_file").name, app_folder
        )
        command = f'"%JAVA%" {vm_args} -jar "%APP_DIR%{jar}" %*'
    lines.append(" ".join(command.split()))
    lines.append("exit /b %ERRORLEVEL%")
    return _cmd_lines(lines)


def _wix_tree(context: BuildContext, folder: Path, seed: str) -> tuple[list[str], list[str]]:
    """``<Directory>``/``<Component>`` elements harvested from ``folder``."""

    app_folder: Path = context.require("app_folder")
    elements: list[str] = []
    components: list[str] = []
    for entry in sorted(folder.iterdir()):
        rel = entry.relative_to(app_folder).as_posix()
        if entry.is_dir():
            children, child_components = _wix_tree(context, entry, seed)
            elements.append(f"<Directory Id={xml_attr(stable_id('dir', seed, rel))} Name={xml_attr(entry.name)}>")
            elements.extend(children)
            elements.append("</Directory>")
            components.extend(child_components)
            continue
        component_id = stable_id("cmp", seed, rel)
        elements.append(
            f"<Component Id={xml_attr(component_id)} Guid={xml_attr(stable_guid(seed, rel))}>"
            f"<File Id={xml_attr(stable_id('fil', seed, rel))} Source={xml_attr(entry)} KeyPath=\"yes\"/>"
            "</Component>"
        )
        components.append(component_id)
    return elements, components


def _module_id(context: BuildContext) -> str:
    return "".join(char if char.isalnum() or char in "._" else "_" for char in context.name)


@template("windows/msm.wxs")
def merge_module(context: BuildContext) -> str:
    task = context.task
    config = task.win_config
    tree, _ = _wix_tree(context, context.require("app_folder"), f"{config.upgrade_code}/msm")
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<Wix xmlns="{_WIX_NAMESPACE}">',
        f"<Module Id={xml_attr(_module_id(context))} Language=\"1033\" Version={xml_attr(config.product_version)}>",
        f"<Package Id={xml_attr(stable_guid(config.upgrade_code, 'msm', task.version))} "
        f"Manufacturer={xml_attr(config.company_name)} Description={xml_attr(task.description)} "
        f'InstallerVersion="200" Platform={xml_attr(config.arch)}/>',
        '<Directory Id="TARGETDIR" Name="SourceDir">',
        '<Directory Id="MergeRedirectFolder">',
        *tree,
        "</Directory>",
        "</Directory>",
        "</Module>",
        "</Wix>",
        "",
    ]
    return "\n".join(lines)


@template("windows/msi.wxs")
def installer(context: BuildContext) -> str:
    task = context.task
    config = task.win_config
    msm = context.artifacts.get("msm")
    executable: Path = context.require("executable")
    program_files = "ProgramFilesFolder" if config.arch == "x86" else "ProgramFiles64Folder"
    scope = "perMachine" if task.administrator_required else "perUser"

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<Wix xmlns="{_WIX_NAMESPACE}">',
        f'<Product Id="*" Name={xml_attr(task.display_name)} Language="1033" '
        f"Version={xml_attr(config.product_version)} Manufacturer={xml_attr(config.company_name)} "
        f"UpgradeCode={xml_attr(config.upgrade_code)}>",
        f'<Package InstallerVersion="200" Compressed="yes" InstallScope="{scope}" '
        f"Platform={xml_attr(config.arch)} Description={xml_attr(task.description)}/>",
        '<MajorUpgrade DowngradeErrorMessage="A newer version of [ProductName] is already installed."/>',
        '<MediaTemplate EmbedCab="yes"/>',
    ]
    if context.icon_file is not None:
        lines.append(f'<Icon Id="ProductIcon.ico" SourceFile={xml_attr(context.icon_file)}/>')
        lines.append('<Property Id="ARPPRODUCTICON" Value="ProductIcon.ico"/>')
    if task.url:
        lines.append(f'<Property Id="ARPURLINFOABOUT" Value={xml_attr(task.url)}/>')

    lines.extend(
        [
            '<Directory Id="TARGETDIR" Name="SourceDir">',
            f'<Directory Id="{program_files}">',
            f'<Directory Id="INSTALLDIR" Name={xml_attr(task.name)}>',
        ]
    )
    if msm is not None:
        lines.append(f'<Merge Id="ApplicationModule" SourceFile={xml_attr(msm.name)} DiskId="1" Language="1033"/>')
        components: list[str] = []
    else:
        tree, components = _wix_tree(context, context.require("app_folder"), f"{config.upgrade_code}/msi")
        lines.extend(tree)
    lines.extend(
        [
            "</Directory>",
            "</Directory>",
            '<Directory Id="ProgramMenuFolder">',
            f'<Directory Id="ApplicationProgramsFolder" Name={xml_attr(task.display_name)}/>',
            "</Directory>",
            "</Directory>",
            '<DirectoryRef Id="ApplicationProgramsFolder">',
            f"<Component Id=\"ApplicationShortcut\" Guid={xml_attr(stable_guid(config.upgrade_code, 'shortcut'))}>",
            f'<Shortcut Id="ApplicationStartMenuShortcut" Name={xml_attr(task.display_name)} '
            f'Target="[INSTALLDIR]{executable.name}" WorkingDirectory="INSTALLDIR"/>',
            '<RemoveFolder Id="RemoveApplicationProgramsFolder" On="uninstall"/>',
            f'<RegistryValue Root="HKCU" Key="Software\\{config.company_name}\\{task.name}" '
            'Name="installed" Type="integer" Value="1" KeyPath="yes"/>',
            "</Component>",
            "</DirectoryRef>",
            f'<Feature Id="DefaultFeature" Title={xml_attr(task.display_name)} Level="1">',
        ]
    )
    if msm is not None:
        lines.append('<MergeRef Id="ApplicationModule"/>')
    lines.extend(f"<ComponentRef Id={xml_attr(component)}/>" for component in components)
    lines.extend(
        [
            '<ComponentRef Id="ApplicationShortcut"/>',
            "</Feature>",
            "</Product>",
            "</Wix>",
            "",
        ]
    )
    return "\n".join(lines)


@template("windows/iss")
def inno_setup(context: BuildContext) -> str:
    task = context.task
    config = task.win_config
    app_folder: Path = context.require("app_folder")
    executable: Path = context.require("executable")
    admin = task.administrator_required

    setup = [
        "[Setup]",
        "AppId={{" + config.upgrade_code + "}",
        f"AppName={task.display_name}",
        f"AppVersion={task.version}",
        f"AppVerName={task.display_name} {task.version}",
        f"AppPublisher={config.company_name}",
        f"AppCopyright={config.copyright}",
        f"VersionInfoVersion={config.file_version}",
        "DefaultDirName=" + ("{autopf}" if admin else "{localappdata}") + "\\" + task.name,
        "DefaultGroupName=" + task.display_name,
        "PrivilegesRequired=" + ("admin" if admin else "lowest"),
        f"OutputBaseFilename={context.artifact_file('exe').stem}",
        "UninstallDisplayIcon={app}\\" + executable.name,
        "Compression=lzma2",
        "SolidCompression=yes",
        "WizardStyle=modern",
    ]
    if task.url:
        setup.append(f"AppPublisherURL={task.url}")
    if context.icon_file is not None:
        setup.append(f"SetupIconFile={context.icon_file}")
    if context.license_file is not None:
        setup.append(f"LicenseFile={context.license_file}")
    if config.arch == "x64":
        setup.extend(["ArchitecturesAllowed=x64compatible", "ArchitecturesInstallIn64BitMode=x64compatible"])
    elif config.arch == "arm64":
        setup.extend(["ArchitecturesAllowed=arm64", "ArchitecturesInstallIn64BitMode=arm64"])

    icon_name = "{group}\\" + task.display_name
    lines = setup + [
        "",
        "[Tasks]",
        'Name: "desktopicon"; Description: "{cm:CreateDesktopIcon}"; Flags: unchecked',
        "",
        "[Files]",
        f'Source: "{app_folder}\\*"; DestDir: "{{app}}"; Flags: ignoreversion recursesubdirs createallsubdirs',
        "",
        "[Icons]",
        f'Name: "{icon_name}"; Filename: "{{app}}\\{executable.name}"',
        f'Name: "{{autodesktop}}\\{task.display_name}"; Filename: "{{app}}\\{executable.name}"; Tasks: desktopicon',
        "",
        "[Run]",
        f'Filename: "{{app}}\\{executable.name}"; Description: "{{cm:LaunchProgram,{task.display_name}}}"; '
        "Flags: nowait postinstall skipifsilent" + (" runascurrentuser" if admin else ""),
        "",
    ]
    return "\r\n".join(lines)
