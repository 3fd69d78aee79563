# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time: without Supabase credentials the app runs offline.
- Accepts the plain SUPABASE_* / VITE_SUPABASE_* names as fallbacks.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "TASKDECK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Backing service ----
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    offline_mode: bool

    # ---- Remote names ----
    tasks_table: str
    db_schema: str
    storage_bucket: str
    feed_channel: str

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdeck").strip() or "taskdeck"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        supabase_url = _first_env(_k("SUPABASE_URL"), "SUPABASE_URL", "VITE_SUPABASE_URL", default=None)
        supabase_key = _first_env(_k("SUPABASE_KEY"), "SUPABASE_KEY", "VITE_SUPABASE_KEY", default=None)
        supabase_url = supabase_url.strip() if supabase_url else None
        supabase_key = supabase_key.strip() if supabase_key else None

        # No credentials -> offline demo backend, regardless of the flag.
        offline_mode = _env_bool(_k("OFFLINE"), False) or not (supabase_url and supabase_key)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            console_enabled=console_enabled,
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            offline_mode=offline_mode,
            tasks_table=_env(_k("TASKS_TABLE"), "tasks").strip() or "tasks",
            db_schema=_env(_k("DB_SCHEMA"), "public").strip() or "public",
            storage_bucket=_env(_k("STORAGE_BUCKET"), "notes-images").strip() or "notes-images",
            feed_channel=_env(_k("FEED_CHANNEL"), "tasks-changes").strip() or "tasks-changes",
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
