from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys

from bizfin.domain.errors import ConfigurationError

APP_NAME = "BizFin"
DB_FILENAME = "bizfin.db"
DEFAULT_STORE_TIMEOUT = 10.0


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path

    @classmethod
    def under(cls, base_dir: Path) -> "AppPaths":
        return cls(base_dir=base_dir, db_path=base_dir / DB_FILENAME, logs_dir=base_dir / "logs")

    def ensure(self) -> "AppPaths":
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        return self


@dataclass(frozen=True)
class StoreSettings:
    """Hosted store connection. Empty `url` means the local SQLite store."""

    url: Optional[str]
    api_key: Optional[str]
    user_id: Optional[str]
    timeout: float = DEFAULT_STORE_TIMEOUT

    @property
    def is_remote(self) -> bool:
        return bool(self.url)


def _data_root(platform: str, environ: Mapping[str, str]) -> Path:
    home = Path.home()
    if platform.startswith("win"):
        return Path(environ.get("APPDATA") or home / "AppData" / "Roaming")
    if platform == "darwin":
        return home / "Library" / "Application Support"
    return Path(environ.get("XDG_DATA_HOME") or home / ".local" / "share")


def get_app_paths(app_name: str = APP_NAME) -> AppPaths:
    """Per-user data directory: %APPDATA%, ~/Library/Application Support or $XDG_DATA_HOME."""
    return AppPaths.under(_data_root(sys.platform, os.environ) / app_name.lower()).ensure()


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    return (environ.get(name) or "").strip() or None


def get_store_settings(environ: Optional[Mapping[str, str]] = None) -> StoreSettings:
    env = os.environ if environ is None else environ
    url = _env(env, "BIZFIN_STORE_URL")
    api_key = _env(env, "BIZFIN_STORE_KEY")
    if url and not api_key:
        raise ConfigurationError("BIZFIN_STORE_KEY is required when BIZFIN_STORE_URL is set.")

    raw_timeout = _env(env, "BIZFIN_STORE_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_STORE_TIMEOUT
    except ValueError as exc:
        raise ConfigurationError(f"BIZFIN_STORE_TIMEOUT must be a number of seconds: {raw_timeout!r}") from exc
    if timeout <= 0:
        raise ConfigurationError("BIZFIN_STORE_TIMEOUT must be positive.")

    return StoreSettings(url=url, api_key=api_key, user_id=_env(env, "BIZFIN_STORE_USER_ID"), timeout=timeout)
