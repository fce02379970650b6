"""Tarball locator strategies."""

from __future__ import annotations

from typing import Callable

import requests

from ..download import new_session
from ..errors import ConfigError
from ..npm_cli import NpmCli
from ..types import FetcherConfig
from .base import TarballLocator
from .npm_pack import NpmPackLocator
from .npm_view import NpmViewLocator
from .registry import RegistryLocator, select_tarball_url

LOCATOR_NAMES = ("npm-pack", "npm-view", "registry")

__all__ = [
    "LOCATOR_NAMES",
    "NpmPackLocator",
    "NpmViewLocator",
    "RegistryLocator",
    "TarballLocator",
    "build_locators",
    "select_tarball_url",
]


def build_locators(
    config: FetcherConfig,
    *,
    npm: NpmCli | None = None,
    session_factory: Callable[[], requests.Session] = new_session,
) -> list[TarballLocator]:
    """Instantiate the strategies named in ``config.strategies``, in order."""

    npm = npm or NpmCli(config.npm_command)
    locators: list[TarballLocator] = []
    for name in config.strategies:
        if name == "npm-pack":
            locators.append(NpmPackLocator(npm, cwd=config.base_dir))
        elif name == "npm-view":
            locators.append(
                NpmViewLocator(
                    npm,
                    timeout=config.timeout_seconds,
                    chunk_size=config.chunk_size,
                    session_factory=session_factory,
                )
            )
        elif name == "registry":
            locators.append(
                RegistryLocator(
                    config.registries,
                    timeout=config.timeout_seconds,
                    chunk_size=config.chunk_size,
                    session_factory=session_factory,
                )
            )
        else:
            raise ConfigError(f"unknown strategy {name!r}; expected one of {', '.join(LOCATOR_NAMES)}")
    return locators
