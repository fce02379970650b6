"""Shared locator contract."""

from __future__ import annotations

import abc
import tempfile
from pathlib import Path

from ..names import PackageSpec
from ..types import ArchiveLocation


class TarballLocator(abc.ABC):
    """Turns a package spec into a tarball on disk below ``work_dir``."""

    name: str = "locator"

    @abc.abstractmethod
    async def locate(self, spec: PackageSpec, work_dir: Path) -> ArchiveLocation:
        """Return the archive location or raise ``LocateError``."""

    def attempt_dir(self, work_dir: Path) -> Path:
        # a private directory per call keeps racing strategies and retries apart
        return Path(tempfile.mkdtemp(prefix=f"{self.name}-", dir=work_dir))
