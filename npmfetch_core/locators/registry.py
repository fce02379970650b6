"""Registry HTTP locator: metadata lookup plus streamed tarball download."""

from __future__ import annotations

import logging
import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import requests

from ..download import download_file, get_json, new_session, run_detached
from ..errors import LocateError, RaceExhaustedError
from ..names import PackageSpec, registry_path
from ..race import first_success
from ..types import ArchiveLocation
from .base import TarballLocator

logger = logging.getLogger(__name__)


def select_tarball_url(metadata: Mapping[str, Any]) -> str:
    """Pick the tarball URL out of registry metadata.

    A packument carries ``dist-tags``; a single-version document (an explicit
    ``name@version`` lookup) carries ``dist`` at the top level.
    """

    tags = metadata.get("dist-tags")
    if isinstance(tags, Mapping):
        latest = tags.get("latest")
        versions = metadata.get("versions")
        if not isinstance(latest, str) or not isinstance(versions, Mapping):
            raise LocateError("registry metadata has no latest version")
        document = versions.get(latest)
        if not isinstance(document, Mapping):
            raise LocateError(f"registry metadata lacks version {latest}")
    else:
        document = metadata
    dist = document.get("dist")
    tarball = dist.get("tarball") if isinstance(dist, Mapping) else None
    if not isinstance(tarball, str) or not tarball.strip():
        raise LocateError("registry metadata has no dist.tarball")
    return tarball.strip()


class RegistryLocator(TarballLocator):
    """Races the primary registry against its mirrors."""

    name = "registry"

    def __init__(
        self,
        registries: Sequence[str],
        *,
        timeout: float = 30.0,
        chunk_size: int = 1024 * 1024,
        session_factory: Callable[[], requests.Session] = new_session,
    ) -> None:
        self.registries = tuple(url.rstrip("/") for url in registries if url and url.strip())
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session_factory = session_factory

    async def locate(self, spec: PackageSpec, work_dir: Path) -> ArchiveLocation:
        if not self.registries:
            raise LocateError("no registries configured")
        operations = {
            base: (lambda base=base: self._locate_from(base, spec, work_dir)) for base in self.registries
        }
        try:
            return await first_success(operations)
        except RaceExhaustedError as exc:
            raise LocateError(f"registry lookup for {spec.display} failed: {exc}") from exc

    async def _locate_from(self, base_url: str, spec: PackageSpec, work_dir: Path) -> ArchiveLocation:
        out_dir = self.attempt_dir(work_dir)
        path = await run_detached(partial(self._fetch_sync, base_url, spec, out_dir))
        return ArchiveLocation(kind="downloaded", path=path, source=f"{self.name}:{base_url}")

    def _fetch_sync(self, base_url: str, spec: PackageSpec, out_dir: Path, cancel: threading.Event) -> Path:
        with self.session_factory() as session:
            metadata = get_json(session, base_url + registry_path(spec), timeout=self.timeout, cancel=cancel)
            url = select_tarball_url(metadata)
            logger.debug("registry %s resolved %s -> %s", base_url, spec.display, url)
            return download_file(
                session, url, out_dir, timeout=self.timeout, chunk_size=self.chunk_size, cancel=cancel
            )
