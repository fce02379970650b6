"""Fetch an npm package's tarball and return the text of its entry file."""

from .config import default_config_path, load_fetcher_config
from .errors import (
    ConfigError,
    EntryReadError,
    ExtractionError,
    FetchError,
    LocateError,
    ManifestError,
    RaceExhaustedError,
)
from .fetcher import PackageFetcher, fetch_package, fetch_package_sync
from .manifest import PackageManifest, load_manifest, resolve_entry
from .names import PackageSpec, parse_package_spec
from .race import first_success
from .retry import retry
from .types import ArchiveLocation, FetcherConfig, FetchRequest

__all__ = [
    "ArchiveLocation",
    "ConfigError",
    "EntryReadError",
    "ExtractionError",
    "FetchError",
    "FetchRequest",
    "FetcherConfig",
    "LocateError",
    "ManifestError",
    "PackageFetcher",
    "PackageManifest",
    "PackageSpec",
    "RaceExhaustedError",
    "default_config_path",
    "fetch_package",
    "fetch_package_sync",
    "first_success",
    "load_fetcher_config",
    "load_manifest",
    "parse_package_spec",
    "resolve_entry",
    "retry",
]
