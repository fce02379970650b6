"""Locator letting ``npm pack`` write the tarball directly."""

from __future__ import annotations

from pathlib import Path

from ..errors import LocateError
from ..names import PackageSpec, tarball_pattern
from ..npm_cli import NpmCli
from ..types import ArchiveLocation
from .base import TarballLocator


class NpmPackLocator(TarballLocator):
    name = "npm-pack"

    def __init__(self, npm: NpmCli, *, cwd: Path | None = None) -> None:
        self.npm = npm
        self.cwd = cwd

    async def locate(self, spec: PackageSpec, work_dir: Path) -> ArchiveLocation:
        out_dir = self.attempt_dir(work_dir)
        await self.npm.pack(spec, out_dir, cwd=self.cwd)
        pattern = tarball_pattern(spec)
        matches = sorted(p for p in out_dir.iterdir() if p.is_file() and pattern.search(p.name))
        if not matches:
            raise LocateError(f"npm pack produced no tarball matching {pattern.pattern!r} in {out_dir}")
        return ArchiveLocation(kind="local", path=matches[0], source=self.name)
