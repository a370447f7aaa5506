"""Environment-backed settings for the civic broker service.

Settings are read once at start-up into an immutable ``Settings`` value and
passed explicitly to the factories that need them.

Examples
--------
>>> settings = load_settings({"CIVICBROKER_REDIS_PORT": "6380"})
>>> settings.redis_port
6380
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_PREFIX = "CIVICBROKER_"
_DEFAULT_REDIS_HOST = "localhost"
_DEFAULT_REDIS_PORT = 6379
_DEFAULT_PUBLIC_BASE_URL = "http://localhost:8080"
_TRUTHY_VALUES = frozenset({"1", "on", "true", "yes"})


@dc.dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration.

    Attributes
    ----------
    redis_host : str
        Host name of the key-value store.
    redis_port : int
        Port of the key-value store.
    public_base_url : str
        Externally visible base URL, used to build cached photo URLs.
    img_cache_url : str | None
        Base URL of the image cache proxy, if one is deployed.
    img_cache_opt : str | None
        Path segment carrying the image cache's resize options.
    log_level : str | None
        Requested femtologging level.
    debug : bool
        Logs audit entries and defaults the log level to DEBUG.
    """

    redis_host: str = _DEFAULT_REDIS_HOST
    redis_port: int = _DEFAULT_REDIS_PORT
    public_base_url: str = _DEFAULT_PUBLIC_BASE_URL
    img_cache_url: str | None = None
    img_cache_opt: str | None = None
    log_level: str | None = None
    debug: bool = False

    @property
    def photo_cache_enabled(self) -> bool:
        """Return True when both halves of the image cache are configured."""
        return bool(self.img_cache_url and self.img_cache_opt)


def _parse_port(raw_value: str | None, default: int) -> int:
    """Parse a TCP port, falling back to ``default`` when invalid."""
    if raw_value is None:
        return default
    try:
        parsed = int(raw_value.strip())
    except ValueError:
        return default
    if not 0 < parsed < 65536:
        return default
    return parsed


def _optional_text(raw_value: str | None) -> str | None:
    if raw_value is None:
        return None
    text = raw_value.strip()
    return text or None


def load_settings(environ: cabc.Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from environment variables.

    Parameters
    ----------
    environ : Mapping[str, str] | None
        Variables to read; defaults to ``os.environ``.

    Returns
    -------
    Settings
        Parsed settings. Missing or malformed values use the defaults.
    """
    env = os.environ if environ is None else environ

    def get(name: str) -> str | None:
        return env.get(f"{_PREFIX}{name}")

    public_base_url = _optional_text(get("PUBLIC_BASE_URL")) or _DEFAULT_PUBLIC_BASE_URL
    return Settings(
        redis_host=_optional_text(get("REDIS_HOST")) or _DEFAULT_REDIS_HOST,
        redis_port=_parse_port(get("REDIS_PORT"), _DEFAULT_REDIS_PORT),
        public_base_url=public_base_url.rstrip("/"),
        img_cache_url=_optional_text(get("IMG_CACHE_URL")),
        img_cache_opt=_optional_text(get("IMG_CACHE_OPT")),
        log_level=_optional_text(get("LOG_LEVEL")),
        debug=(get("DEBUG") or "").strip().lower() in _TRUTHY_VALUES,
    )
