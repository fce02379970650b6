"""Loading of the ``[fetch]`` section of the npmfetch config file."""

from __future__ import annotations

import os
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

from platformdirs import user_config_dir

from .errors import ConfigError
from .locators import LOCATOR_NAMES
from .types import DEFAULT_APP_NAME, FetcherConfig

CONFIG_FILE_NAME = "config.toml"
TEST_MODE_ENV = "NPMFETCH_TEST_MODE"
_TRUTHY = {"1", "true", "yes", "on"}


def default_config_path() -> Path:
    """Return the platform-specific default config path."""

    return Path(user_config_dir(DEFAULT_APP_NAME, appauthor=False)) / CONFIG_FILE_NAME


def env_flag(env: Mapping[str, str], key: str) -> bool:
    return str(env.get(key, "")).strip().lower() in _TRUTHY


def load_fetcher_config(
    path: Path | str | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> FetcherConfig:
    """Build a :class:`FetcherConfig` from TOML plus the test-mode env flag.

    A missing file yields the defaults; an explicit ``path`` that is missing
    is an error.
    """

    env = os.environ if env is None else env
    config_path = Path(path) if path is not None else default_config_path()
    section: Mapping[str, Any] = {}
    if config_path.exists():
        try:
            payload = tomllib.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"unable to read {config_path}: {exc}") from exc
        raw = payload.get("fetch", {})
        if not isinstance(raw, dict):
            raise ConfigError(f"[fetch] in {config_path} must be a table")
        section = raw
    elif path is not None:
        raise ConfigError(f"config file not found: {config_path}")

    config = config_from_mapping(section)
    if env_flag(env, TEST_MODE_ENV):
        config = replace(config, test_mode=True)
    return config


def config_from_mapping(section: Mapping[str, Any]) -> FetcherConfig:
    defaults = FetcherConfig()
    kwargs: dict[str, Any] = {}
    try:
        if section.get("base_dir"):
            kwargs["base_dir"] = Path(str(section["base_dir"])).expanduser()
        if "registries" in section:
            kwargs["registries"] = _string_tuple(section["registries"], "registries")
        if "strategies" in section:
            strategies = _string_tuple(section["strategies"], "strategies")
            unknown = [name for name in strategies if name not in LOCATOR_NAMES]
            if unknown:
                raise ConfigError(f"unknown strategies: {', '.join(unknown)}")
            kwargs["strategies"] = strategies
        if section.get("npm_command"):
            kwargs["npm_command"] = str(section["npm_command"]).strip()
        if "timeout_seconds" in section:
            kwargs["timeout_seconds"] = max(float(section["timeout_seconds"]), 1.0)
        if "attempt_timeout_seconds" in section:
            value = section["attempt_timeout_seconds"]
            kwargs["attempt_timeout_seconds"] = float(value) if value and float(value) > 0 else None
        if "chunk_size" in section:
            kwargs["chunk_size"] = max(int(section["chunk_size"]), 1024)
        if "placeholder_manifest" in section:
            kwargs["placeholder_manifest"] = bool(section["placeholder_manifest"])
        if "test_mode" in section:
            kwargs["test_mode"] = bool(section["test_mode"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid [fetch] value: {exc}") from exc
    return replace(defaults, **kwargs)


def _string_tuple(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list of strings")
    items = tuple(str(item).strip() for item in value if str(item).strip())
    if not items:
        raise ConfigError(f"{key} must not be empty")
    return items

