"""Command line entry point: ``native-packager <task.yaml> [stage]``."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from packager_core.config import load_task
from packager_core.driver import PackagerDriver
from packager_core.errors import PackagerError
from packager_core.logging import setup_logging

_STAGES = ("app", "installers", "bundles", "all")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="native-packager",
        description="Package a Java application as a native app with a bundled runtime and installers",
    )
    parser.add_argument("task", help="YAML file describing the packaging task")
    parser.add_argument(
        "stage",
        nargs="?",
        default="all",
        choices=_STAGES,
        help="What to produce after the app: installers, bundles or both (default: all)",
    )
    parser.add_argument("--platform", help="Target platform (auto, linux, mac, windows)")
    parser.add_argument("--output-dir", help="Override the output directory of the task")
    parser.add_argument("--jdk", help="JDK used for the runtime image (overrides jdk_path)")
    parser.add_argument("--no-installer", action="store_true", help="Skip installer generation")
    parser.add_argument("--force-installer", action="store_true", help="Generate installers for a foreign platform")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-format", choices=("text", "json"), help="Log output format")
    parser.add_argument("--log-file", help="Also write logs to this (rotating) file")
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {"platform": args.platform}
    if args.output_dir:
        overrides["output_directory"] = Path(args.output_dir).expanduser().resolve()
    if args.jdk:
        overrides["jdk_path"] = Path(args.jdk).expanduser().resolve()
    if args.no_installer:
        overrides["generate_installer"] = False
    if args.force_installer:
        overrides["force_installer"] = True
    return overrides


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(level="DEBUG" if args.verbose else None, log_file=args.log_file, format_type=args.log_format)

    produced: list[Path] = []
    try:
        task = load_task(args.task, overrides=_overrides(args))
        driver = PackagerDriver(task)
        produced.append(driver.create_app())
        if args.stage in ("installers", "all"):
            produced.extend(driver.generate_installers())
        if args.stage in ("bundles", "all"):
            produced.extend(driver.create_bundles())
    except PackagerError as exc:
        raise SystemExit(str(exc)) from exc

    for path in produced:
        print(path)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
