"""
Settings — environment driven, `.env` aware.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys)
    if v is None:
        return default
    return int(v)


@dataclass(frozen=True, slots=True)
class Settings:
    api_url: str = "http://localhost:5000/api"
    storage_url: str = "sqlite+aiosqlite:///:memory:"
    log_level: str = "INFO"
    # backend only
    access_ttl_seconds: int = 900
    refresh_ttl_seconds: int = 7 * 24 * 3600

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        return cls(
            api_url=(_get_env("CARTSYNC_API_URL", default=defaults.api_url) or defaults.api_url).rstrip("/"),
            storage_url=_get_env("CARTSYNC_STORAGE_URL", default=defaults.storage_url) or defaults.storage_url,
            log_level=(_get_env("CARTSYNC_LOG_LEVEL", default=defaults.log_level) or defaults.log_level).upper(),
            access_ttl_seconds=_get_int("CARTSYNC_ACCESS_TTL", default=defaults.access_ttl_seconds),
            refresh_ttl_seconds=_get_int("CARTSYNC_REFRESH_TTL", default=defaults.refresh_ttl_seconds),
        )


def load_settings(dotenv_path: str | None = None) -> Settings:
    """Load `.env` (existing environment wins) and build Settings."""
    load_dotenv(dotenv_path=dotenv_path, override=False)
    return Settings.from_env()


__all__ = ("Settings", "load_settings")
