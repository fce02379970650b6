"""Security helpers for extraction paths and log redaction."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlsplit

_SENSITIVE_KEYS = ("password", "token", "authorization", "_auth")


def safe_output_path(base_dir: Path, relative_path: str) -> Path | None:
    """Return the resolved path below ``base_dir`` or ``None`` if it escapes."""

    target = (base_dir / relative_path).resolve()
    root = base_dir.resolve()
    if target == root:
        return target
    if root not in target.parents:
        return None
    return target


def redact_url(url: str) -> str:
    if "://" not in url:
        return url
    parsed = urlsplit(url)
    if not parsed.password:
        return url
    safe_netloc = parsed.netloc.replace(parsed.password, "***")
    return url.replace(parsed.netloc, safe_netloc)


def redact_command_for_log(command: list[str]) -> list[str]:
    redacted: list[str] = []
    for item in command:
        lower = item.lower()
        if any(key in lower for key in _SENSITIVE_KEYS) and "=" in item:
            key, _ = item.split("=", 1)
            redacted.append(f"{key}=***")
            continue
        redacted.append(redact_url(item))
    return redacted
