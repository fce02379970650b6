"""Fetch orchestration: race the locators, extract, resolve, read, clean up."""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional, Sequence

from .errors import EntryReadError, LocateError
from .extract import extract_archive
from .locators import TarballLocator, build_locators
from .manifest import MANIFEST_NAME, find_package_root, load_manifest, resolve_entry
from .names import PackageSpec, parse_package_spec
from .race import first_success
from .retry import retry
from .security import safe_output_path
from .types import ArchiveLocation, FetcherConfig, FetchLogger, FetchRequest

logger = logging.getLogger(__name__)

Extractor = Callable[[Path, Path], None]

EXTRACT_DIR_NAME = "extracted"
PLACEHOLDER_MANIFEST = {
    "name": "npmfetch-workspace",
    "version": "0.0.0",
    "private": True,
    "description": "placeholder so older npm releases accept `npm pack` here",
}


class PackageFetcher:
    """Fetches a package tarball and returns the text of its entry file.

    Every call works in its own directory below ``config.base_dir``; that
    directory is removed before ``fetch`` returns or raises.
    """

    def __init__(
        self,
        config: FetcherConfig | None = None,
        *,
        locators: Sequence[TarballLocator] | None = None,
        extractor: Extractor = extract_archive,
    ) -> None:
        self.config = config or FetcherConfig()
        self.locators = list(locators) if locators is not None else build_locators(self.config)
        self.extractor = extractor

    async def fetch(self, request: FetchRequest) -> str:
        spec = parse_package_spec(request.package_name)
        log = request.logger
        placeholder = self._prepare_base_dir()
        work_dir = Path(tempfile.mkdtemp(prefix="fetch-", dir=self.config.base_dir))
        try:
            log.info(f"fetching {spec.display} (dist={request.dist or '-'}, retries={request.retries})")
            archive = await retry(
                lambda: self._race(spec, work_dir, request.retries),
                request.retries,
                label=f"race {spec.display}",
            )
            log.info(f"obtained {archive.path.name} via {archive.source}")

            extract_dir = work_dir / EXTRACT_DIR_NAME
            await asyncio.to_thread(self.extractor, archive.path, extract_dir)
            package_root = find_package_root(extract_dir)
            manifest = load_manifest(package_root / MANIFEST_NAME)
            entry = resolve_entry(manifest, request.dist)
            log.info(f"resolved entry {entry} for {spec.display}")
            content = read_entry(package_root, entry)
        except Exception as exc:
            stage = getattr(exc, "stage", "fetch")
            log.error(f"fetching {spec.display} failed at {stage}: {exc}")
            raise
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        if self.config.test_mode and placeholder is not None:
            placeholder.unlink(missing_ok=True)
        return content

    def _prepare_base_dir(self) -> Optional[Path]:
        """Create the base directory; return the placeholder manifest if this call wrote it."""

        base_dir = self.config.base_dir
        base_dir.mkdir(parents=True, exist_ok=True)
        if not self.config.placeholder_manifest:
            return None
        placeholder = base_dir / MANIFEST_NAME
        if placeholder.exists():
            return None
        try:
            with placeholder.open("x", encoding="utf-8") as f:
                json.dump(PLACEHOLDER_MANIFEST, f, indent=2)
        except FileExistsError:
            return None
        logger.debug("wrote placeholder manifest %s", placeholder)
        return placeholder

    async def _race(self, spec: PackageSpec, work_dir: Path, retries: int) -> ArchiveLocation:
        operations = {
            locator.name: (
                lambda locator=locator: retry(
                    lambda: self._attempt(locator, spec, work_dir),
                    retries,
                    label=f"{locator.name} {spec.display}",
                )
            )
            for locator in self.locators
        }
        return await first_success(operations)

    async def _attempt(self, locator: TarballLocator, spec: PackageSpec, work_dir: Path) -> ArchiveLocation:
        timeout = self.config.attempt_timeout_seconds
        try:
            return await asyncio.wait_for(locator.locate(spec, work_dir), timeout)
        except TimeoutError as exc:
            raise LocateError(f"{locator.name} timed out after {timeout:.1f}s") from exc
        except OSError as exc:
            raise LocateError(f"{locator.name} failed: {exc}") from exc


def read_entry(package_root: Path, entry: str) -> str:
    # "/index.js" names a file inside the package, as a path join would read it
    target = safe_output_path(package_root, entry.lstrip("/"))
    if target is None:
        raise EntryReadError(f"entry {entry!r} escapes the package root")
    try:
        return target.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise EntryReadError(f"entry file not found: {entry}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise EntryReadError(f"unable to read entry {entry}: {exc}") from exc


async def fetch_package(
    name: str,
    *,
    dist: str | None = None,
    retries: int = 1,
    logger: FetchLogger | None = None,
    config: FetcherConfig | None = None,
) -> str:
    """Fetch ``name`` (optionally ``name@version``) and return its entry file text."""

    if logger is None:
        request = FetchRequest(package_name=name, dist=dist, retries=retries)
    else:
        request = FetchRequest(package_name=name, dist=dist, retries=retries, logger=logger)
    return await PackageFetcher(config).fetch(request)


def fetch_package_sync(
    name: str,
    *,
    dist: str | None = None,
    retries: int = 1,
    logger: FetchLogger | None = None,
    config: FetcherConfig | None = None,
) -> str:
    return asyncio.run(fetch_package(name, dist=dist, retries=retries, logger=logger, config=config))
