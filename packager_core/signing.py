"""Code signing (``codesign``, ``signtool``) and Apple notarization."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from packager_core.config.models import MacConfig, WindowsConfig
from packager_core.errors import ConfigurationError, ToolInvocationFailure
from packager_core.utils import commands

_LOGGER = logging.getLogger(__name__)

_STATUS_PATTERN = re.compile(r"^\s*status:\s*(?P<status>.+?)\s*$", re.MULTILINE | re.IGNORECASE)
_ID_PATTERN = re.compile(r"^\s*id:\s*(?P<id>[0-9a-fA-F-]{8,})\s*$", re.MULTILINE)
_SECRET_FLAGS = frozenset({"--password", "--key-id", "/p"})
_REJECTED_STATUSES = {"invalid", "rejected"}


class MacCodeSigner:
    """Signs an ``.app`` bundle, nested runtime binaries first."""

    def __init__(self, *, identity: str, entitlements: Path | None = None, hardened_runtime: bool = True) -> None:
        self._identity = identity
        self._entitlements = entitlements
        self._hardened_runtime = hardened_runtime

    def _options(self) -> list[str]:
        options = ["--force", "--timestamp", "--sign", self._identity]
        if self._hardened_runtime:
            options.extend(["--options", "runtime"])
        if self._entitlements is not None:
            options.extend(["--entitlements", str(self._entitlements)])
        return options

    def _nested_binaries(self, bundle: Path) -> list[Path]:
        plugins = bundle / "Contents" / "PlugIns"
        if not plugins.exists():
            return []
        binaries = [
            path
            for path in sorted(plugins.rglob("*"))
            if path.is_file() and (path.suffix == ".dylib" or path.parent.name == "bin")
        ]
        return binaries

    def sign(self, bundle: Path) -> None:
        _LOGGER.info("Signing app bundle %s with identity '%s'", bundle, self._identity)
        for binary in self._nested_binaries(bundle):
            commands.execute("codesign", self._options(), binary)
        commands.execute("codesign", self._options(), "--deep", bundle)
        commands.execute("codesign", "--verify", "--deep", "--strict", "--verbose=2", bundle)

    @classmethod
    def from_config(cls, config: MacConfig, entitlements: Path | None) -> "MacCodeSigner":
        return cls(
            identity=config.developer_id or "-",
            entitlements=entitlements,
            hardened_runtime=config.developer_id not in (None, "-"),
        )


class WindowsCodeSigner:
    """Authenticode signing through ``signtool``."""

    def __init__(
        self,
        *,
        certificate_file: Path,
        password: str | None = None,
        timestamp_url: str | None = None,
        tool: str = "signtool",
    ) -> None:
        self._certificate_file = certificate_file
        self._password = password
        self._timestamp_url = timestamp_url
        self._tool = tool

    def sign(self, target: Path) -> None:
        _LOGGER.info("Signing %s", target)
        args: list[str] = ["sign", "/fd", "SHA256", "/f", str(self._certificate_file)]
        if self._password:
            args.extend(["/p", self._password])
        if self._timestamp_url:
            args.extend(["/tr", self._timestamp_url, "/td", "SHA256"])
        commands.execute(self._tool, args, target, redact_flags=_SECRET_FLAGS)

    @classmethod
    def from_config(cls, config: WindowsConfig) -> "WindowsCodeSigner":
        if config.certificate_file is None:
            raise ConfigurationError("Windows signing enabled but 'certificate_file' is not set")
        if not config.certificate_file.is_file():
            raise ConfigurationError(f"Certificate file doesn't exist: {config.certificate_file}")
        return cls(
            certificate_file=config.certificate_file,
            password=config.certificate_password,
            timestamp_url=config.timestamp_url,
        )


@dataclass(slots=True)
class NotarizationResult:
    """Summary of a notarization attempt."""

    command: list[str]
    status: str | None
    submission_id: str | None
    stapled: bool
    output: str = ""

    @property
    def accepted(self) -> bool:
        return (self.status or "").lower() == "accepted"

    def to_mapping(self) -> Mapping[str, object]:
        return {
            "command": self.command,
            "status": self.status,
            "submission_id": self.submission_id,
            "stapled": self.stapled,
            "accepted": self.accepted,
        }


class Notarizer:
    """Handles submission of app bundles to the Apple notary service."""

    def __init__(
        self,
        *,
        bundle_id: str,
        tool: str = "xcrun",
        profile: str | None = None,
        api_key: str | None = None,
        api_issuer: str | None = None,
        api_key_path: Path | None = None,
        staple: bool = True,
    ) -> None:
        self._bundle_id = bundle_id
        self._tool = tool
        self._profile = profile
        self._api_key = api_key
        self._api_issuer = api_issuer
        self._api_key_path = api_key_path
        self._staple = staple

    def _credentials(self) -> list[str]:
        if self._profile:
            return ["--keychain-profile", self._profile]
        if self._api_key and self._api_issuer and self._api_key_path:
            return ["--key", str(self._api_key_path), "--key-id", self._api_key, "--issuer", self._api_issuer]
        raise ConfigurationError("Notarization requires either a keychain profile or App Store Connect API key")

    def _build_command(self, archive_path: Path) -> list[str]:
        return [self._tool, "notarytool", "submit", str(archive_path), "--wait", *self._credentials()]

    def notarize(self, bundle: Path, *, work_dir: Path) -> NotarizationResult:
        archive = work_dir / f"{bundle.stem}.zip"
        command = self._build_command(archive)
        archive.unlink(missing_ok=True)
        commands.execute("ditto", "-c", "-k", "--sequesterRsrc", "--keepParent", bundle, archive)

        _LOGGER.info("Submitting %s for notarization (bundle id %s)", archive, self._bundle_id)
        output = commands.execute(command[0], command[1:], redact_flags=_SECRET_FLAGS)

        status_match = _STATUS_PATTERN.findall(output)
        status = status_match[-1] if status_match else None
        id_match = _ID_PATTERN.search(output)
        submission_id = id_match.group("id") if id_match else None

        if status is not None and status.lower() in _REJECTED_STATUSES:
            raise ToolInvocationFailure(
                commands.redact(command, _SECRET_FLAGS), 0, output, reason=f"notarization {status}"
            )

        stapled = False
        if status is not None and status.lower() == "accepted" and self._staple:
            stapled = self._staple_ticket(bundle)
        return NotarizationResult(
            command=commands.redact(command, _SECRET_FLAGS),
            status=status,
            submission_id=submission_id,
            stapled=stapled,
            output=output,
        )

    def _staple_ticket(self, bundle: Path) -> bool:
        try:
            commands.execute(self._tool, "stapler", "staple", bundle)
        except ToolInvocationFailure as exc:
            _LOGGER.warning("Stapler command failed: %s", exc)
            return False
        return True

    @classmethod
    def from_config(cls, config: MacConfig) -> "Notarizer":
        return cls(
            bundle_id=config.app_id or "",
            profile=config.keychain_profile,
            api_key=config.api_key,
            api_issuer=config.api_issuer,
            api_key_path=config.api_key_path,
        )


__all__ = ["MacCodeSigner", "NotarizationResult", "Notarizer", "WindowsCodeSigner"]
