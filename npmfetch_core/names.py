"""Package spec parsing and the names derived from it.

A single normalization rule is applied everywhere a package name is turned
into something else (registry path, ``npm`` argument, tarball filename), so
the three locator strategies always agree on what a spec means.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

__all__ = [
    "PackageSpec",
    "parse_package_spec",
    "registry_path",
    "tarball_pattern",
]


@dataclass(frozen=True)
class PackageSpec:
    raw: str
    name: str
    version: Optional[str] = None

    @property
    def scope(self) -> Optional[str]:
        if self.name.startswith("@") and "/" in self.name:
            return self.name.split("/", 1)[0]
        return None

    @property
    def display(self) -> str:
        if self.version:
            return f"{self.name}@{self.version}"
        return self.name


def parse_package_spec(spec: str) -> PackageSpec:
    """Split ``name[@version]``; a leading ``@`` belongs to the scope."""

    raw = (spec or "").strip()
    offset = 1 if raw.startswith("@") else 0
    sep = raw.find("@", offset)
    if sep == -1:
        name, version = raw, None
    else:
        name, version = raw[:sep].strip(), raw[sep + 1 :].strip() or None
    if not name or (name.startswith("@") and not _valid_scoped(name)):
        raise ValueError(f"invalid package spec: {spec!r}")
    return PackageSpec(raw=raw, name=name, version=version)


def _valid_scoped(name: str) -> bool:
    scope, _, bare = name[1:].partition("/")
    return bool(scope) and bool(bare)


def registry_path(spec: PackageSpec) -> str:
    # "@scope/name" -> "@scope%2Fname"; an explicit version becomes a path segment
    path = "/" + quote(spec.name, safe="@")
    if spec.version:
        path += "/" + quote(spec.version, safe="")
    return path


def tarball_pattern(spec: PackageSpec) -> re.Pattern[str]:
    """Regex matching the file ``npm pack`` writes for ``spec``.

    Only the first ``@`` is stripped and only the first ``/`` replaced, which
    is how npm names scoped tarballs (``@scope/name`` -> ``scope-name-1.0.0.tgz``).
    """

    stem = spec.name.replace("@", "", 1).replace("/", "-", 1)
    return re.compile(rf"{re.escape(stem)}-.*\.tgz")
