"""Tarball extraction with path-traversal protection."""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path

from .errors import ExtractionError
from .security import safe_output_path

logger = logging.getLogger(__name__)


def extract_archive(archive: Path, destination: Path) -> None:
    """Extract a (gzipped) tarball into ``destination``."""

    destination.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive, "r:*") as tar:
            members = tar.getmembers()
            for member in members:
                if safe_output_path(destination, member.name) is None:
                    raise ExtractionError(f"path traversal blocked for archive member: {member.name}")
            tar.extractall(destination, members=members, filter="data")
    except ExtractionError:
        raise
    except (tarfile.TarError, OSError, EOFError) as exc:
        raise ExtractionError(f"unable to extract {archive.name}: {exc}") from exc
    logger.debug("extracted %s members from %s into %s", len(members), archive, destination)
