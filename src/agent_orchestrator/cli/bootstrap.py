# src/agent_orchestrator/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the store, the API clients, the command handlers and the gateway into AppState.
"""

from __future__ import annotations

import logging

from ..clients.agent_client import AgentApiClient
from ..clients.github_client import GitHubClient
from ..config import Settings, get_settings
from ..core.state import AppState
from ..gateway import build_gateway
from ..tasks.task_service import TaskService
from ..tasks.task_store import JsonTaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    Raises ValueError when a required credential is missing.
    """
    if settings is None:
        settings = get_settings()

    missing = settings.missing_credentials()
    if missing:
        raise ValueError(f"Missing required configuration: {', '.join(missing)}")

    _ensure_local_dirs(settings)

    task_store = JsonTaskStore(settings.tasks_dir)
    agent = AgentApiClient(
        settings.agent_api_key or "",
        base_url=settings.agent_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )
    pull_requests = GitHubClient(
        settings.github_token or "",
        api_url=settings.github_api_url,
        timeout_seconds=settings.http_timeout_seconds,
    )
    service = TaskService(
        task_store,
        agent,
        pull_requests,
        default_repo=settings.default_repo,
        default_base_branch=settings.default_base_branch,
    )

    return AppState(
        settings=settings,
        task_store=task_store,
        agent=agent,
        pull_requests=pull_requests,
        service=service,
        gateway=build_gateway(service),
    )


async def close_state(state: AppState) -> None:
    """Best-effort shutdown of network clients (no exceptions should escape)."""
    for client in (state.agent, state.pull_requests):
        aclose = getattr(client, "aclose", None)
        if aclose is None:
            continue
        try:
            await aclose()
        except Exception:
            logger.debug("Client close failed.", exc_info=True)
