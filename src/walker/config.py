"""Client settings.

Values are resolved in order of precedence:

1. keyword overrides passed to :func:`load_settings`
2. environment variables (``WALKER_API_URL``, ``WALKER_API_TOKEN``,
   ``WALKER_CACHE_PATH``, ``WALKER_SYNC_INTERVAL``, ``WALKER_TIMEOUT``)
3. the ``[walker]`` table of a TOML config file::

       [walker]
       api_url       = "https://shop.example.com/api"
       cache_path    = "~/.walker/cache.duckdb"
       sync_interval = 30

4. built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from walker.remote import DEFAULT_API_URL

_ENV = {
    "api_url": "WALKER_API_URL",
    "api_token": "WALKER_API_TOKEN",
    "cache_path": "WALKER_CACHE_PATH",
    "sync_interval": "WALKER_SYNC_INTERVAL",
    "timeout": "WALKER_TIMEOUT",
}


@dataclass
class Settings:
    api_url: str = DEFAULT_API_URL
    api_token: str = ""
    cache_path: str = "~/.walker/cache.duckdb"
    sync_interval: float = 30.0
    timeout: float = 10.0

    @property
    def cache_file(self) -> Path | str:
        return self.cache_path if self.cache_path == ":memory:" else Path(self.cache_path).expanduser()


def _coerce(name: str, value: Any) -> Any:
    if name in {"sync_interval", "timeout"}:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be a number, got {value!r}") from None
        if number <= 0:
            raise ValueError(f"{name} must be positive, got {value!r}")
        return number
    return str(value)


def load_settings(config_path: Path | str | None = None, **overrides: Any) -> Settings:
    """Build :class:`Settings` from *overrides*, the environment, and *config_path*."""
    known = {f.name for f in fields(Settings)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"unknown setting(s): {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}

    if config_path is not None:
        with open(config_path, "rb") as fh:
            data = tomllib.load(fh)
        table = data.get("walker", {})
        values.update({k: v for k, v in table.items() if k in known})

    for name, env in _ENV.items():
        if os.getenv(env):
            values[name] = os.environ[env]

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**{k: _coerce(k, v) for k, v in values.items()})
