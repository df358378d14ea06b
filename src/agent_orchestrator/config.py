# src/agent_orchestrator/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Components receive the Settings explicitly; get_settings() is only for the entrypoint.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

ENV_PREFIX = "ORCH"


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
    console_enabled: bool

    # ---- Agent session API ----
    agent_api_key: Optional[str]
    agent_base_url: str

    # ---- Source hosting (GitHub) ----
    github_token: Optional[str]
    github_api_url: str
    default_repo: str
    default_base_branch: str

    # ---- Reconciliation / HTTP ----
    poll_interval_seconds: float
    http_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_dir: Path

    def missing_credentials(self) -> List[str]:
        """Names of required secrets that are not configured."""
        missing: List[str] = []
        if not (self.agent_api_key or "").strip():
            missing.append(_k("AGENT_API_KEY"))
        if not (self.github_token or "").strip():
            missing.append(_k("GITHUB_TOKEN"))
        return missing

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "agent-orchestrator")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        # Accept the bare names too, so an existing shell environment keeps working.
        agent_api_key = _first_env(_k("AGENT_API_KEY"), "JULES_API_KEY", default=None)
        agent_base_url = _env(_k("AGENT_BASE_URL"), "https://jules.googleapis.com/v1alpha")

        github_token = _first_env(_k("GITHUB_TOKEN"), "GITHUB_TOKEN", default=None)
        github_api_url = _env(_k("GITHUB_API_URL"), "https://api.github.com")
        default_repo = _env(_k("DEFAULT_REPO"), "").strip()
        default_base_branch = _env(_k("DEFAULT_BASE_BRANCH"), "main").strip() or "main"

        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 10.0)
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 30.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/orchestrator"))
        tasks_dir = _env_path(_k("TASKS_DIR"), data_dir / "tasks")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            agent_api_key=agent_api_key,
            agent_base_url=agent_base_url.rstrip("/"),
            github_token=github_token,
            github_api_url=github_api_url.rstrip("/"),
            default_repo=default_repo,
            default_base_branch=default_base_branch,
            poll_interval_seconds=poll_interval_seconds,
            http_timeout_seconds=http_timeout_seconds,
            data_dir=data_dir,
            tasks_dir=tasks_dir,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load settings once (reads .env on first call)."""
    global _SETTINGS
    if _SETTINGS is None:
        _load_dotenv_if_available()
        _SETTINGS = Settings.from_env()
    return _SETTINGS
