"""Command line surface: print a package's entry file to stdout."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from npmfetch_core import FetchError, FetchRequest, PackageFetcher, load_fetcher_config
from npmfetch_core.locators import LOCATOR_NAMES
from npmfetch_core.types import FetcherConfig

CLI_VERSION = "0.1.0"


class _ProgressLogger:
    """Request logger for the CLI; failures are reported once by ``main``."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def info(self, msg: str) -> None:
        self._logger.info(msg)

    def error(self, msg: str) -> None:
        self._logger.debug(msg)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="npmfetch",
        description="Fetch an npm package tarball and print its entry file.",
    )
    parser.add_argument("--version", action="version", version=f"npmfetch v{CLI_VERSION}")
    parser.add_argument("package", help="package name, optionally name@version")
    parser.add_argument("--dist", help="distribution tag to look for in main/exports, e.g. dist-mjs")
    parser.add_argument("--retries", type=int, default=1, help="retries per strategy and per race (default: 1)")
    parser.add_argument("--config", help="path to config.toml (default: platform config dir)")
    parser.add_argument(
        "--registry",
        action="append",
        dest="registries",
        metavar="URL",
        help="registry base URL; repeat for mirrors (first is primary)",
    )
    parser.add_argument(
        "--strategy",
        action="append",
        dest="strategies",
        choices=LOCATOR_NAMES,
        help="locator strategy to race; repeat to select several (default: all)",
    )
    parser.add_argument("--base-dir", help="directory holding per-fetch working directories")
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def _apply_overrides(config: FetcherConfig, args: argparse.Namespace) -> FetcherConfig:
    changes = {}
    if args.registries:
        changes["registries"] = tuple(args.registries)
    if args.strategies:
        changes["strategies"] = tuple(dict.fromkeys(args.strategies))
    if args.base_dir:
        changes["base_dir"] = Path(args.base_dir).expanduser()
    if args.timeout is not None:
        changes["timeout_seconds"] = max(float(args.timeout), 1.0)
    return replace(config, **changes) if changes else config


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.retries < 0:
        parser.error("--retries must be >= 0")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[npmfetch] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    try:
        config = _apply_overrides(load_fetcher_config(args.config), args)
        request = FetchRequest(
            package_name=args.package,
            dist=args.dist,
            retries=args.retries,
            logger=_ProgressLogger(logging.getLogger("npmfetch")),
        )
        content = asyncio.run(PackageFetcher(config).fetch(request))
    except FetchError as exc:
        print(f"[npmfetch] {exc.stage} failed: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"[npmfetch] {exc}", file=sys.stderr)
        return 1
    sys.stdout.write(content)
    return 0
