# src/agent_orchestrator/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..gateway import GatewayRegistry
from ..tasks.task_service import TaskService
from .ports import AgentClient, PullRequestClient, TaskRepo


@dataclass
class AppState:
    """Explicitly wired dependencies, built once by the composition root."""

    # Store Settings on the state for easy access in other modules later.
    settings: object

    task_store: TaskRepo
    agent: AgentClient
    pull_requests: PullRequestClient
    service: TaskService
    gateway: GatewayRegistry
