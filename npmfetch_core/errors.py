"""Typed fetch errors."""

from __future__ import annotations

from typing import Mapping


class FetchError(RuntimeError):
    """Base fetch error."""

    stage = "fetch"


class ConfigError(FetchError):
    """Configuration file is unreadable or invalid."""

    stage = "config"


class LocateError(FetchError):
    """A single locator strategy failed to produce an archive."""

    stage = "locate"


class RaceExhaustedError(FetchError):
    """Every raced operation failed."""

    stage = "locate"

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures = dict(failures)
        if self.failures:
            detail = "; ".join(f"{label}: {exc}" for label, exc in self.failures.items())
            message = f"all {len(self.failures)} strategies failed ({detail})"
        else:
            message = "no strategies to run"
        super().__init__(message)


class ExtractionError(FetchError):
    """Archive is unreadable, corrupt or unsafe."""

    stage = "extract"


class ManifestError(FetchError):
    """package.json is missing or cannot be parsed."""

    stage = "manifest"


class EntryReadError(FetchError):
    """Resolved entry file is missing or unreadable."""

    stage = "entry"
