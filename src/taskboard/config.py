# src/taskboard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


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

    # ---- Board ----
    owner_id: str | None
    timer_tick_seconds: float

    # ---- Connector flags ----
    console_enabled: bool
    matrix_enabled: bool

    # ---- Matrix (notification delivery) ----
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_room_id: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    identity_path: Path
    matrix_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskboard") or "taskboard"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        owner_id = _env(_k("OWNER_ID"), "").strip() or None
        timer_tick_seconds = max(0.05, _env_float(_k("TIMER_TICK_SECONDS"), 1.0))

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)

        matrix_homeserver = _env(_k("MATRIX_HOMESERVER")).strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID")).strip()
        matrix_password = _env(_k("MATRIX_PASSWORD")).strip()
        matrix_room_id = _env(_k("MATRIX_ROOM_ID")).strip()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskboard"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "board.sqlite3")
        identity_path = _env_path(_k("IDENTITY_PATH"), data_dir / "identity.json")
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            owner_id=owner_id,
            timer_tick_seconds=timer_tick_seconds,
            console_enabled=console_enabled,
            matrix_enabled=matrix_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_room_id=matrix_room_id,
            data_dir=data_dir,
            db_path=db_path,
            identity_path=identity_path,
            matrix_store_path=matrix_store_path,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env for secrets; use config_local.py only for safe switches.
try:
    import config_local as _config_local  # type: ignore
except ImportError:
    _config_local = None

if _config_local is not None:
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        SETTINGS = replace(SETTINGS, console_enabled=bool(_config_local.CONSOLE_ENABLED))
    if hasattr(_config_local, "MATRIX_ENABLED"):
        SETTINGS = replace(SETTINGS, matrix_enabled=bool(_config_local.MATRIX_ENABLED))


def get_settings() -> Settings:
    return SETTINGS
