# src/agent_orchestrator/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The reconciler and the command handlers depend on Protocols instead of concrete
implementations. This keeps the agent/source-hosting backends and the record
store swappable and lets tests plug in fakes.
"""

from datetime import datetime
from typing import Any, Awaitable, Protocol


class TaskRepo(Protocol):
    """Durable task records keyed by id."""

    def save(self, task: Any) -> None: ...
    def get(self, task_id: str) -> Any | None: ...
    def list(self) -> list[Any]: ...
    def update(
            self,
            task_id: str,
            *,
            expected_updated_at: datetime | None = None,
            **fields: Any,
    ) -> Any: ...


class AgentClient(Protocol):
    """Remote coding-agent session lifecycle."""

    def create_session(self, *, repo: str, description: str) -> Awaitable[str]: ...
    def get_session_state(self, session_id: str) -> Awaitable[str]: ...
    def approve_plan(self, session_id: str) -> Awaitable[None]: ...
    def approve_diff(self, session_id: str) -> Awaitable[None]: ...
    def cancel_session(self, session_id: str) -> Awaitable[None]: ...


class PullRequestClient(Protocol):
    """Source-hosting side: opening pull requests."""

    def create_pull_request(
            self,
            *,
            repo: str,
            branch: str,
            title: str,
            body: str,
            base: str = "main",
    ) -> Awaitable[str]: ...
