"""Fetch datatypes and configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

from platformdirs import user_cache_dir

DEFAULT_APP_NAME = "npmfetch"
DEFAULT_REGISTRIES = ("https://registry.npmjs.org", "https://registry.npmmirror.com")
DEFAULT_STRATEGIES = ("npm-pack", "npm-view", "registry")

ArchiveKind = Literal["local", "downloaded"]


class FetchLogger(Protocol):
    def info(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...


def default_base_dir() -> Path:
    return Path(user_cache_dir(DEFAULT_APP_NAME, appauthor=False)) / "work"


def _default_logger() -> FetchLogger:
    return logging.getLogger(DEFAULT_APP_NAME)


@dataclass(frozen=True)
class FetcherConfig:
    base_dir: Path = field(default_factory=default_base_dir)
    registries: tuple[str, ...] = DEFAULT_REGISTRIES
    strategies: tuple[str, ...] = DEFAULT_STRATEGIES
    npm_command: str = "npm"
    timeout_seconds: float = 30.0
    attempt_timeout_seconds: float | None = 120.0
    chunk_size: int = 1024 * 1024
    placeholder_manifest: bool = True
    test_mode: bool = False


@dataclass(frozen=True)
class FetchRequest:
    package_name: str
    dist: str | None = None
    retries: int = 1
    logger: FetchLogger = field(default_factory=_default_logger)

    def __post_init__(self) -> None:
        if not self.package_name or not self.package_name.strip():
            raise ValueError("package name is required")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")


@dataclass(frozen=True)
class ArchiveLocation:
    kind: ArchiveKind
    path: Path
    source: str
