"""Blocking HTTP helpers built on requests; callers run them in a daemon worker thread."""

from __future__ import annotations

import asyncio
import logging
import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Tuple, TypeVar
from urllib.parse import unquote, urlsplit

import requests
from requests import RequestException

from .errors import LocateError
from .security import redact_url

logger = logging.getLogger(__name__)

Timeout = float | Tuple[float, float]

T = TypeVar("T")


async def run_detached(func: Callable[[threading.Event], T], *, name: str = "npmfetch-download") -> T:
    """Run ``func(cancel)`` in a daemon thread and await its result.

    When the awaiting task is cancelled, ``cancel`` is set and the thread is
    left to wind down on its own. Neither ``asyncio.run`` nor interpreter exit
    waits for it, unlike ``asyncio.to_thread`` workers.
    """

    loop = asyncio.get_running_loop()
    future: asyncio.Future[T] = loop.create_future()
    cancel = threading.Event()

    def _deliver(setter: Callable[[Any], None], value: Any) -> None:
        if not future.done():
            setter(value)

    def _worker() -> None:
        try:
            outcome = partial(_deliver, future.set_result, func(cancel))
        except Exception as exc:
            outcome = partial(_deliver, future.set_exception, exc)
        try:
            loop.call_soon_threadsafe(outcome)
        except RuntimeError:
            # loop already closed, nobody is waiting
            logger.debug("%s finished after its event loop closed", name)

    threading.Thread(target=_worker, name=name, daemon=True).start()
    try:
        return await future
    except asyncio.CancelledError:
        cancel.set()
        raise


def _check_cancel(cancel: Optional[threading.Event], url: str) -> None:
    if cancel is not None and cancel.is_set():
        raise LocateError(f"download {redact_url(url)} cancelled")


def new_session() -> requests.Session:
    session = requests.Session()
    session.headers.setdefault("Accept", "application/json")
    session.headers.setdefault("User-Agent", "npmfetch")
    return session


def get_json(
    session: requests.Session,
    url: str,
    *,
    timeout: Timeout,
    cancel: Optional[threading.Event] = None,
) -> Mapping[str, Any]:
    _check_cancel(cancel, url)
    logger.debug("GET %s", redact_url(url))
    try:
        resp = session.get(url, timeout=timeout)
    except RequestException as exc:
        raise LocateError(f"GET {redact_url(url)} failed: {exc}") from exc
    if resp.status_code >= 400:
        raise LocateError(f"GET {redact_url(url)} returned {resp.status_code}")
    try:
        payload = resp.json()
    except ValueError as exc:
        raise LocateError(f"GET {redact_url(url)} returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise LocateError(f"GET {redact_url(url)} returned a non-object document")
    return payload


def tarball_filename(url: str) -> str:
    name = unquote(urlsplit(url).path.rsplit("/", 1)[-1]).strip()
    return name or "package.tgz"


def download_file(
    session: requests.Session,
    url: str,
    out_dir: Path,
    *,
    timeout: Timeout,
    chunk_size: int = 1024 * 1024,
    cancel: Optional[threading.Event] = None,
) -> Path:
    """Stream ``url`` into ``out_dir`` and return the written file.

    The body is written to a ``.part`` sibling and renamed once complete; on
    any failure the partial file is removed and :class:`LocateError` raised.
    A set ``cancel`` event stops the transfer before the request or between
    chunks. ``out_dir`` must already exist.
    """

    target = out_dir / tarball_filename(url)
    part_file = target.with_name(target.name + ".part")
    logger.debug("download %s -> %s", redact_url(url), target)
    try:
        _check_cancel(cancel, url)
        with session.get(url, stream=True, timeout=timeout) as resp:
            if resp.status_code >= 400:
                raise LocateError(f"download {redact_url(url)} returned {resp.status_code}")
            with part_file.open("xb") as f:
                for chunk in resp.iter_content(chunk_size=chunk_size):
                    _check_cancel(cancel, url)
                    if chunk:
                        f.write(chunk)
        part_file.replace(target)
    except LocateError:
        part_file.unlink(missing_ok=True)
        raise
    except (RequestException, OSError) as exc:
        part_file.unlink(missing_ok=True)
        raise LocateError(f"download {redact_url(url)} failed: {exc}") from exc
    if target.stat().st_size == 0:
        target.unlink(missing_ok=True)
        raise LocateError(f"download {redact_url(url)} returned an empty body")
    return target
