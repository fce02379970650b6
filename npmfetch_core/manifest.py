"""package.json loading and entry-file resolution."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .errors import ManifestError

__all__ = [
    "DEFAULT_ENTRY",
    "ExportTarget",
    "PackageManifest",
    "find_package_root",
    "load_manifest",
    "resolve_entry",
]

DEFAULT_ENTRY = "index.js"
MANIFEST_NAME = "package.json"
PACKAGE_DIR_NAME = "package"


@dataclass(frozen=True)
class ExportTarget:
    import_path: Optional[str] = None
    require_path: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "ExportTarget":
        if not isinstance(value, Mapping):
            return cls()
        return cls(
            import_path=_string_or_none(value.get("import")),
            require_path=_string_or_none(value.get("require")),
        )


@dataclass(frozen=True)
class PackageManifest:
    name: Optional[str] = None
    version: Optional[str] = None
    main: Optional[str] = None
    exports: Mapping[str, ExportTarget] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PackageManifest":
        raw_exports = data.get("exports")
        exports: dict[str, ExportTarget] = {}
        if isinstance(raw_exports, Mapping):
            for key, value in raw_exports.items():
                exports[str(key)] = ExportTarget.from_value(value)
        return cls(
            name=_string_or_none(data.get("name")),
            version=_string_or_none(data.get("version")),
            main=_string_or_none(data.get("main")),
            exports=exports,
            raw=dict(data),
        )


def load_manifest(path: Path) -> PackageManifest:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestError(f"manifest not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"unable to read manifest {path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ManifestError(f"manifest {path} is not a JSON object")
    return PackageManifest.from_dict(payload)


def find_package_root(extract_dir: Path) -> Path:
    """Return the directory holding package.json inside an extracted tarball.

    npm tarballs use ``package/``; a few publishers (``@types``) use the bare
    package name instead, in which case the single top-level directory wins.
    """

    conventional = extract_dir / PACKAGE_DIR_NAME
    if (conventional / MANIFEST_NAME).is_file():
        return conventional
    if extract_dir.is_dir():
        dirs = [p for p in extract_dir.iterdir() if p.is_dir()]
        if len(dirs) == 1 and (dirs[0] / MANIFEST_NAME).is_file():
            return dirs[0]
    return conventional


def resolve_entry(manifest: PackageManifest, dist: Optional[str] = None) -> str:
    """Pick the entry file for ``dist``.

    ``main`` (or ``index.js``) wins unless a tag was requested that it does
    not already contain; then the first export whose ``import`` or, failing
    that, ``require`` path contains the tag is used. Matching is a plain
    substring test and nested conditions are not followed. When nothing
    matches the ``main`` value is returned.
    """

    entry = manifest.main or DEFAULT_ENTRY
    if not dist or dist in entry:
        return entry
    for target in manifest.exports.values():
        if target.import_path is not None and dist in target.import_path:
            return target.import_path
        if target.require_path is not None and dist in target.require_path:
            return target.require_path
    return entry


def _string_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None
