# src/agent_orchestrator/core/errors.py

"""
Error taxonomy shared by the store, the clients and the command handlers.

Every failure is scoped to one task or one command invocation; none of these
errors should take the process down.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for errors surfaced to gateway callers."""


class TaskNotFoundError(OrchestratorError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class InvalidStateError(OrchestratorError):
    """The command is not allowed for the task's current status."""

    def __init__(self, task_id: str, status: object, message: str) -> None:
        super().__init__(f"Task {task_id} ({status}): {message}")
        self.task_id = task_id
        self.status = status


class ConflictError(OrchestratorError):
    """The record changed between read and write (optimistic check failed)."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} was modified concurrently")
        self.task_id = task_id


class RemoteCallError(OrchestratorError):
    """
    An agent or source-hosting API call failed.

    operation: short name of the remote call ("create_session", "create_pull_request", ...)
    status_code: HTTP status when the server answered, None for transport errors.
    """

    def __init__(self, operation: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.status_code = status_code


class MalformedRecordError(OrchestratorError):
    """A persisted task record could not be decoded."""
