"""Tests for package.json loading and entry resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from npmfetch_core.errors import ManifestError
from npmfetch_core.manifest import PackageManifest, find_package_root, load_manifest, resolve_entry


def _manifest(**data: object) -> PackageManifest:
    return PackageManifest.from_dict(data)


def test_first_matching_export_wins_in_declaration_order() -> None:
    manifest = _manifest(
        main="./lib/index.js",
        exports={
            "a": {"import": "./x/dist-mjs/foo.js"},
            "b": {"require": "./dist-mjs/bar.js"},
        },
    )
    assert resolve_entry(manifest, "dist-mjs") == "./x/dist-mjs/foo.js"


def test_require_is_used_when_import_does_not_match() -> None:
    manifest = _manifest(
        main="./lib/index.js",
        exports={
            ".": {"import": "./esm/index.mjs", "require": "./dist-cjs/index.js"},
        },
    )
    assert resolve_entry(manifest, "dist-cjs") == "./dist-cjs/index.js"


def test_main_is_kept_when_it_already_contains_the_tag() -> None:
    manifest = _manifest(
        main="./lib/dist-cjs/index.js",
        exports={".": {"import": "./dist-cjs/other.mjs"}},
    )
    assert resolve_entry(manifest, "dist-cjs") == "./lib/dist-cjs/index.js"


def test_no_tag_returns_main_or_default() -> None:
    assert resolve_entry(_manifest(main="./main.js")) == "./main.js"
    assert resolve_entry(_manifest()) == "index.js"
    assert resolve_entry(_manifest(main="")) == "index.js"


def test_unmatched_tag_falls_back_without_error() -> None:
    assert resolve_entry(_manifest(main="./lib/index.js"), "esm") == "./lib/index.js"
    assert resolve_entry(_manifest(), "esm") == "index.js"
    manifest = _manifest(main="./lib/index.js", exports={".": {"import": "./lib/index.mjs"}})
    assert resolve_entry(manifest, "esm") == "./lib/index.js"


def test_tag_matches_as_plain_substring() -> None:
    manifest = _manifest(
        exports={
            "./utils": {"import": "./build/not-esm-really/utils.js"},
            ".": {"import": "./esm/index.js"},
        }
    )
    assert resolve_entry(manifest, "esm") == "./build/not-esm-really/utils.js"


def test_non_object_export_values_are_skipped() -> None:
    manifest = _manifest(
        main="index.js",
        exports={
            "./package.json": "./package.json",
            "./nested": {"import": {"types": "./t.d.ts", "default": "./esm/nested.js"}},
            ".": {"require": "./cjs/index.js"},
        },
    )
    assert resolve_entry(manifest, "cjs") == "./cjs/index.js"
    assert resolve_entry(manifest, "esm") == "index.js"


def test_string_exports_yield_no_entries() -> None:
    manifest = _manifest(main="index.js", exports="./esm/index.js")
    assert manifest.exports == {}
    assert resolve_entry(manifest, "esm") == "index.js"


def test_load_manifest_reads_fields(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text(
        json.dumps({"name": "demo", "version": "1.0.0", "main": "lib/a.js", "exports": {".": {"import": "./m.js"}}}),
        encoding="utf-8",
    )
    manifest = load_manifest(path)
    assert manifest.name == "demo"
    assert manifest.version == "1.0.0"
    assert manifest.main == "lib/a.js"
    assert manifest.exports["."].import_path == "./m.js"
    assert manifest.exports["."].require_path is None


def test_load_manifest_errors(tmp_path: Path) -> None:
    with pytest.raises(ManifestError, match="not found"):
        load_manifest(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ManifestError, match="invalid JSON"):
        load_manifest(broken)

    array = tmp_path / "array.json"
    array.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ManifestError, match="not a JSON object"):
        load_manifest(array)


def test_find_package_root_prefers_conventional_dir(tmp_path: Path) -> None:
    (tmp_path / "package").mkdir()
    (tmp_path / "package" / "package.json").write_text("{}", encoding="utf-8")
    assert find_package_root(tmp_path) == tmp_path / "package"


def test_find_package_root_accepts_single_top_level_dir(tmp_path: Path) -> None:
    (tmp_path / "node").mkdir()
    (tmp_path / "node" / "package.json").write_text("{}", encoding="utf-8")
    assert find_package_root(tmp_path) == tmp_path / "node"


def test_find_package_root_defaults_when_nothing_found(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    assert find_package_root(tmp_path) == tmp_path / "package"
