"""Shared fixtures: npm-style tarballs and an in-process mock registry."""

from __future__ import annotations

import http.server
import io
import json
import tarfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping
from urllib.parse import unquote, urlparse

import pytest


def build_tarball(files: Mapping[str, str | bytes], *, root: str = "package") -> bytes:
    """Return gzipped tar bytes with ``files`` placed below ``root``."""

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(f"{root}/{name}" if root else name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


@pytest.fixture
def tarball_bytes() -> Callable[..., bytes]:
    return build_tarball


@pytest.fixture
def tarball_factory(tmp_path: Path) -> Callable[..., Path]:
    counter = {"n": 0}

    def _make(files: Mapping[str, str | bytes], *, name: str = "pkg-1.0.0.tgz", root: str = "package") -> Path:
        counter["n"] += 1
        out_dir = tmp_path / f"tarballs-{counter['n']}"
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / name
        path.write_bytes(build_tarball(files, root=root))
        return path

    return _make


class MockRegistryState:
    """Package documents and tarball blobs served by the mock registry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.blobs: Dict[str, bytes] = {}
        self.requests: list[str] = []
        self.fail_metadata = False
        self.fail_downloads = False

    def record(self, path: str) -> None:
        with self._lock:
            self.requests.append(path)


class _MockRegistryRequestHandler(http.server.BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _state(self) -> MockRegistryState:
        return self.server.state  # type: ignore[attr-defined]

    def _write(self, status: int, data: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self) -> None:
        state = self._state()
        path = unquote(urlparse(self.path).path)
        state.record(path)
        if path.startswith("/-/blobs/"):
            blob = state.blobs.get(path)
            if blob is None or state.fail_downloads:
                self._write(500 if blob is not None else 404, b"", "text/plain")
                return
            self._write(200, blob, "application/octet-stream")
            return
        if state.fail_metadata:
            self._write(503, b'{"error": "unavailable"}', "application/json")
            return
        document = state.documents.get(path)
        if document is None:
            self._write(404, b'{"error": "not found"}', "application/json")
            return
        self._write(200, json.dumps(document).encode("utf-8"), "application/json")

    def log_message(self, *_: Any) -> None:  # pragma: no cover - avoid noisy logs
        return


class _ThreadingHTTPServer(http.server.ThreadingHTTPServer):
    allow_reuse_address = True
    daemon_threads = True


class MockRegistryServer:
    """Helper that runs the mock registry in a background thread."""

    def __init__(self) -> None:
        self.state = MockRegistryState()
        self.httpd = _ThreadingHTTPServer(("127.0.0.1", 0), _MockRegistryRequestHandler)
        self.httpd.state = self.state  # type: ignore[attr-defined]
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self.url = ""

    def start(self) -> None:
        self.thread.start()
        host, port = self.httpd.server_address[:2]
        self.url = f"http://{host}:{port}"

    def stop(self) -> None:
        self.httpd.shutdown()
        self.thread.join(timeout=2)
        self.httpd.server_close()

    def publish(self, name: str, version: str, data: bytes, *, latest: bool = True) -> str:
        """Register a version and return its tarball URL."""

        stem = name.replace("@", "", 1).replace("/", "-", 1)
        blob_path = f"/-/blobs/{stem}-{version}.tgz"
        tarball_url = f"{self.url}{blob_path}"
        self.state.blobs[blob_path] = data
        version_doc = {"name": name, "version": version, "dist": {"tarball": tarball_url}}
        packument = self.state.documents.setdefault(
            f"/{name}", {"name": name, "dist-tags": {}, "versions": {}}
        )
        packument["versions"][version] = version_doc
        if latest:
            packument["dist-tags"]["latest"] = version
        self.state.documents[f"/{name}/{version}"] = version_doc
        return tarball_url


@pytest.fixture
def registry_server() -> Iterator[MockRegistryServer]:
    server = MockRegistryServer()
    server.start()
    try:
        yield server
    finally:
        server.stop()
