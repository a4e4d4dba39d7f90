# src/efficacy/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every value has a default, so a bare `efficacy` works on first run.
- Settings are injectable: callers pass their own object, tests use a namespace.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from .task_format import DEFAULT_TASK_FORMAT, FALLBACK_TASK_FORMAT, valid_task_format

logger = logging.getLogger(__name__)

ENV_PREFIX = "EFFICACY"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


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
    log_dir: Path

    # ---- Data ----
    data_dir: Path

    # ---- Display ----
    task_format: str
    color: bool

    @staticmethod
    def from_env() -> "Settings":
        load_dotenv(find_dotenv(usecwd=True), override=False)

        home = Path.home()

        task_format = _env(_k("TASK_FORMAT"), DEFAULT_TASK_FORMAT)
        if not valid_task_format(task_format):
            logger.warning("Invalid task format %r, using %r", task_format, FALLBACK_TASK_FORMAT)
            task_format = FALLBACK_TASK_FORMAT

        return Settings(
            app_name=_env(_k("APP_NAME"), "efficacy"),
            log_level=_env(_k("LOG_LEVEL"), "WARNING"),
            log_dir=_env_path(_k("LOG_DIR"), home / ".local" / "state" / "efficacy"),
            data_dir=_env_path(_k("DATA_DIR"), home / ".efficacy"),
            task_format=task_format,
            # NO_COLOR (https://no-color.org) wins over our own switch.
            color=_env_bool(_k("COLOR"), True) and os.getenv("NO_COLOR") is None,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
