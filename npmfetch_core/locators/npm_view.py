"""Locator asking ``npm view`` for the tarball URL, then downloading it."""

from __future__ import annotations

import threading
from functools import partial
from pathlib import Path
from typing import Callable

import requests

from ..download import download_file, new_session, run_detached
from ..names import PackageSpec
from ..npm_cli import NpmCli
from ..types import ArchiveLocation
from .base import TarballLocator


class NpmViewLocator(TarballLocator):
    name = "npm-view"

    def __init__(
        self,
        npm: NpmCli,
        *,
        timeout: float = 30.0,
        chunk_size: int = 1024 * 1024,
        session_factory: Callable[[], requests.Session] = new_session,
    ) -> None:
        self.npm = npm
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session_factory = session_factory

    async def locate(self, spec: PackageSpec, work_dir: Path) -> ArchiveLocation:
        url = await self.npm.view_tarball(spec)
        out_dir = self.attempt_dir(work_dir)
        path = await run_detached(partial(self._download_sync, url, out_dir))
        return ArchiveLocation(kind="downloaded", path=path, source=self.name)

    def _download_sync(self, url: str, out_dir: Path, cancel: threading.Event) -> Path:
        with self.session_factory() as session:
            return download_file(
                session, url, out_dir, timeout=self.timeout, chunk_size=self.chunk_size, cancel=cancel
            )
