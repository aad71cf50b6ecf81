"""Packaging task schema: application identity, paths, flags and per-platform blocks."""
from __future__ import annotations

import logging
import re
import uuid
from enum import Enum
from pathlib import Path, PureWindowsPath
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packager_core.errors import ConfigurationError
from packager_core.platforms import Platform, resolve

_LOGGER = logging.getLogger(__name__)

DEFAULT_ORGANIZATION_NAME = "ACME"

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")

_DOWNLOADABLE_SCHEMES = {"http", "https", "file", "ftp"}


def _slug(value: str, separator: str = "-") -> str:
    return _SLUG_PATTERN.sub(separator, value.lower()).strip(separator) or "app"


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class MacStartup(str, Enum):
    """Flavour of the precompiled launcher stub copied into ``Contents/MacOS``."""

    UNIVERSAL = "UNIVERSAL"
    X86_64 = "X86_64"
    ARM64 = "ARM64"
    SCRIPT = "SCRIPT"

    @property
    def stub_resource(self) -> str:
        return {
            MacStartup.UNIVERSAL: "universalJavaApplicationStub",
            MacStartup.X86_64: "universalJavaApplicationStub.x86_64",
            MacStartup.ARM64: "universalJavaApplicationStub.arm64",
            MacStartup.SCRIPT: "universalJavaApplicationStub.sh",
        }[self]


class WindowsLauncherMode(str, Enum):
    """How the Windows launcher starts the JVM."""

    SCRIPT = "script"
    GUI = "gui"
    CONSOLE = "console"


class LicenseInfo(BaseModel):
    """License declared in the project metadata."""

    name: str = Field("", description="License name (e.g. MIT, Apache-2.0).")
    url: str | None = Field(None, description="Location of the full license text.")

    def validated_url(self) -> str | None:
        """Stripped URL, ``None`` when blank; a malformed URL raises :class:`ConfigurationError`."""

        if _blank(self.url):
            return None
        url = self.url.strip()
        parsed = urlparse(url)
        scheme = parsed.scheme.lower()
        if scheme not in _DOWNLOADABLE_SCHEMES or not (parsed.netloc or parsed.path):
            raise ConfigurationError(f"Invalid license URL specified: {url}")
        if scheme != "file" and not parsed.netloc:
            raise ConfigurationError(f"Invalid license URL specified: {url}")
        return url


class _PlatformConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    custom_launcher: Path | None = Field(
        None, description="Prebuilt launcher copied instead of the generic stub."
    )


class MacConfig(_PlatformConfig):
    """macOS specific settings."""

    app_id: str | None = Field(None, description="CFBundleIdentifier, also the notarization bundle id.")
    volume_name: str | None = Field(None, description="Volume name of the generated DMG.")
    relocate_jar: bool = Field(True, description="Place jars in Contents/Resources/Java.")
    mac_startup: MacStartup = MacStartup.SCRIPT
    custom_info_plist: Path | None = None
    provision_profile: Path | None = None
    codesign_app: bool = False
    developer_id: str | None = Field(None, description="Signing identity passed to codesign.")
    entitlements: Path | None = None
    notarize_app: bool = False
    keychain_profile: str | None = None
    api_key: str | None = None
    api_issuer: str | None = None
    api_key_path: Path | None = None
    generate_dmg: bool = True
    generate_pkg: bool = True

    def set_defaults(self, task: "PackagingTask") -> None:
        if _blank(self.app_id):
            self.app_id = f"{_slug(task.organization_name or DEFAULT_ORGANIZATION_NAME, '')}.{_slug(task.name, '')}"
        if _blank(self.volume_name):
            self.volume_name = task.display_name
        if self.codesign_app and _blank(self.developer_id):
            _LOGGER.warning("No developer id configured, the app will be signed ad-hoc")
            self.developer_id = "-"


class WindowsConfig(_PlatformConfig):
    """Windows specific settings."""

    launcher_mode: WindowsLauncherMode = WindowsLauncherMode.SCRIPT
    arch: str = Field("x64", pattern=r"^(x64|x86|arm64)$")
    custom_manifest: Path | None = None
    company_name: str | None = None
    copyright: str | None = None
    product_version: str | None = None
    file_version: str | None = None
    upgrade_code: str | None = None
    generate_setup: bool = True
    generate_msi: bool = True
    generate_msm: bool = False
    sign: bool = False
    certificate_file: Path | None = None
    certificate_password: str | None = None
    timestamp_url: str | None = "http://timestamp.digicert.com"

    def set_defaults(self, task: "PackagingTask") -> None:
        if _blank(self.company_name):
            self.company_name = task.organization_name
        if _blank(self.copyright):
            self.copyright = task.organization_name
        if _blank(self.product_version):
            self.product_version = numeric_version(task.version)
        if _blank(self.file_version):
            self.file_version = numeric_version(task.version)
        if _blank(self.upgrade_code):
            seed = f"{task.organization_name}.{task.name}"
            self.upgrade_code = str(uuid.uuid5(uuid.NAMESPACE_DNS, seed)).upper()


class LinuxConfig(_PlatformConfig):
    """Linux specific settings."""

    package_name: str | None = None
    maintainer: str | None = None
    categories: list[str] = Field(default_factory=lambda: ["Utility"])
    install_path: str = "/opt"
    custom_desktop_file: Path | None = None
    generate_deb: bool = True
    generate_rpm: bool = True

    def set_defaults(self, task: "PackagingTask") -> None:
        if _blank(self.package_name):
            self.package_name = _slug(task.name)
        if _blank(self.maintainer):
            email = task.organization_email or f"info@{_slug(task.organization_name or 'acme')}.com"
            self.maintainer = f"{task.organization_name} <{email}>"


def numeric_version(version: str) -> str:
    """Turn ``1.2-SNAPSHOT`` into ``1.2.0.0`` (Windows resources need four numbers)."""

    numbers = [int(part) for part in re.findall(r"\d+", version)[:4]]
    numbers.extend([0] * (4 - len(numbers)))
    return ".".join(str(number) for number in numbers)


class PackagingTask(BaseModel):
    """Full configuration of a single packaging run."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Application name, also used for file names.")
    display_name: str | None = None
    version: str = "1.0.0"
    description: str | None = None
    url: str | None = None
    organization_name: str | None = None
    organization_url: str | None = None
    organization_email: str | None = None
    main_class: str | None = None

    platform: Platform = Platform.AUTO
    output_directory: Path = Path("target")
    project_dir: Path = Path(".")
    assets_dir: Path = Path("assets")
    jdk_path: Path | None = None
    jre_path: Path | None = Field(None, description="Explicit runtime folder embedded as-is.")
    jre_directory_name: str = "jre"
    runnable_jar: Path | None = None
    dependencies: list[Path] = Field(default_factory=list)
    copy_dependencies: bool = True
    additional_resources: list[Path] = Field(default_factory=list)
    license_file: Path | None = None
    icon_file: Path | None = None
    licenses: list[LicenseInfo] = Field(default_factory=list)

    bundle_jre: bool = True
    customized_jre: bool = True
    modules: list[str] = Field(default_factory=list)
    additional_modules: list[str] = Field(default_factory=list)
    generate_installer: bool = True
    force_installer: bool = False
    create_tarball: bool = False
    create_zipball: bool = False
    administrator_required: bool = False
    use_resources_as_working_dir: bool = True
    vm_args: list[str] = Field(default_factory=list)
    classpath: str | None = None
    env_path: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    mac_config: MacConfig | None = Field(default_factory=MacConfig)
    win_config: WindowsConfig | None = Field(default_factory=WindowsConfig)
    linux_config: LinuxConfig | None = Field(default_factory=LinuxConfig)

    @field_validator("platform", mode="before")
    @classmethod
    def _parse_platform(cls, value: object) -> Platform:
        return Platform.parse(value)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    def apply_defaults(self, *, default_jdk: Path | None = None) -> None:
        """Fill derived defaults and validate; safe to call more than once."""

        _validate_name(self.name)
        if self.licenses:
            self.licenses[0].validated_url()
        if _blank(self.display_name):
            self.display_name = self.name
        if _blank(self.description):
            self.description = self.display_name
        if _blank(self.organization_name):
            self.organization_name = DEFAULT_ORGANIZATION_NAME
        if self.organization_url is None:
            self.organization_url = ""
        self.platform = resolve(self.platform)

        if self.jdk_path is None:
            self.jdk_path = default_jdk
        if self.jdk_path is None:
            raise ConfigurationError("JDK path not specified and no JDK detected")
        if not self.jdk_path.exists():
            raise ConfigurationError(f"JDK path doesn't exist: {self.jdk_path}")

    def retain_platform_config(self) -> None:
        """Drop the configuration blocks of every platform but the target one."""

        if self.platform is Platform.LINUX:
            self.mac_config = None
            self.win_config = None
        elif self.platform is Platform.MAC:
            self.win_config = None
            self.linux_config = None
        elif self.platform is Platform.WINDOWS:
            self.linux_config = None
            self.mac_config = None

    def platform_config(self) -> MacConfig | WindowsConfig | LinuxConfig:
        config = {
            Platform.MAC: self.mac_config,
            Platform.WINDOWS: self.win_config,
            Platform.LINUX: self.linux_config,
        }.get(self.platform)
        if config is None:
            config = {Platform.MAC: MacConfig, Platform.WINDOWS: WindowsConfig}.get(self.platform, LinuxConfig)()
            setattr(self, _CONFIG_ATTRIBUTES[self.platform], config)
        return config

    @property
    def license_name(self) -> str:
        return self.licenses[0].name if self.licenses else ""

    def rebase(self, base_dir: Path) -> "PackagingTask":
        """Resolve every relative path against ``base_dir`` (the task file folder)."""

        _rebase_model(self, base_dir)
        return self


_CONFIG_ATTRIBUTES = {
    Platform.MAC: "mac_config",
    Platform.WINDOWS: "win_config",
    Platform.LINUX: "linux_config",
}


def _validate_name(name: str) -> None:
    if "/" in name:
        raise ConfigurationError(f"Invalid name specified: {name} (illegal char </>)")
    if "\\" in name:
        raise ConfigurationError(f"Invalid name specified: {name} (illegal char <\\>)")
    if name in {".", ".."} or PureWindowsPath(name).name != name or "\x00" in name:
        raise ConfigurationError(f"Invalid name specified: {name}")


def _rebase_value(value: Any, base_dir: Path) -> Any:
    if isinstance(value, Path):
        expanded = value.expanduser()
        return expanded if expanded.is_absolute() else (base_dir / expanded).resolve()
    if isinstance(value, list):
        return [_rebase_value(item, base_dir) for item in value]
    if isinstance(value, BaseModel):
        _rebase_model(value, base_dir)
    return value


def _rebase_model(model: BaseModel, base_dir: Path) -> None:
    for field_name in type(model).model_fields:
        current = getattr(model, field_name)
        rebased = _rebase_value(current, base_dir)
        if rebased is not current:
            setattr(model, field_name, rebased)


__all__ = [
    "DEFAULT_ORGANIZATION_NAME",
    "LicenseInfo",
    "LinuxConfig",
    "MacConfig",
    "MacStartup",
    "PackagingTask",
    "WindowsConfig",
    "WindowsLauncherMode",
    "numeric_version",
]
