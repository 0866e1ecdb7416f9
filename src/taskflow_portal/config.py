# src/taskflow_portal/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every consumer also accepts an injected settings object (tests never read env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKFLOW"


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


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


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

    # ---- Front end ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    snapshot_path: Path

    # ---- Feed / undo capacities ----
    undo_limit: int
    notification_limit: int
    toast_timeout_seconds: float

    # ---- Mutation simulation ----
    create_latency_seconds: float
    update_latency_seconds: float
    failure_rate: float

    # ---- Calendar ----
    recurrence_max_steps: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskflow") or "taskflow"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskflow"))
        snapshot_path = _env_path(_k("SNAPSHOT_PATH"), data_dir / "snapshot.json")

        undo_limit = max(1, _env_int(_k("UNDO_LIMIT"), 25))
        notification_limit = max(1, _env_int(_k("NOTIFICATION_LIMIT"), 150))
        toast_timeout_seconds = max(0.0, _env_float(_k("TOAST_TIMEOUT_SECONDS"), 5.5))

        create_latency_seconds = max(0.0, _env_float(_k("CREATE_LATENCY_SECONDS"), 0.9))
        update_latency_seconds = max(0.0, _env_float(_k("UPDATE_LATENCY_SECONDS"), 0.85))
        failure_rate = min(1.0, max(0.0, _env_float(_k("FAILURE_RATE"), 0.2)))

        recurrence_max_steps = max(1, _env_int(_k("RECURRENCE_MAX_STEPS"), 500))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            snapshot_path=snapshot_path,
            undo_limit=undo_limit,
            notification_limit=notification_limit,
            toast_timeout_seconds=toast_timeout_seconds,
            create_latency_seconds=create_latency_seconds,
            update_latency_seconds=update_latency_seconds,
            failure_rate=failure_rate,
            recurrence_max_steps=recurrence_max_steps,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
