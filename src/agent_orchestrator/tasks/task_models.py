# src/agent_orchestrator/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from ..core.errors import InvalidStateError, MalformedRecordError


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - QUEUED and MERGED are part of the lifecycle vocabulary but nothing in this
      process produces them; they may appear in records written elsewhere.
    """

    NEW = "NEW"
    QUEUED = "QUEUED"
    PLANNING = "PLANNING"
    WAITING_FOR_PLAN_APPROVAL = "WAITING_FOR_PLAN_APPROVAL"
    RUNNING = "RUNNING"
    WAITING_FOR_DIFF_APPROVAL = "WAITING_FOR_DIFF_APPROVAL"
    READY_FOR_PR = "READY_FOR_PR"
    PR_CREATED = "PR_CREATED"
    MERGED = "MERGED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({TaskStatus.MERGED, TaskStatus.CANCELLED, TaskStatus.FAILED})

# Statuses for which the reconciler polls the remote session.
POLLING_STATUSES = frozenset({TaskStatus.QUEUED, TaskStatus.PLANNING, TaskStatus.RUNNING})

WAITING_STATUSES = frozenset(
    {TaskStatus.WAITING_FOR_PLAN_APPROVAL, TaskStatus.WAITING_FOR_DIFF_APPROVAL}
)

_NON_TERMINAL = frozenset(TaskStatus) - TERMINAL_STATUSES

# Directed edges of the lifecycle. Anything not listed here is rejected.
TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.NEW: frozenset({TaskStatus.PLANNING, TaskStatus.FAILED}),
    TaskStatus.QUEUED: frozenset(
        {
            TaskStatus.WAITING_FOR_PLAN_APPROVAL,
            TaskStatus.WAITING_FOR_DIFF_APPROVAL,
            TaskStatus.READY_FOR_PR,
            TaskStatus.FAILED,
        }
    ),
    TaskStatus.WAITING_FOR_PLAN_APPROVAL: frozenset({TaskStatus.RUNNING}),
    TaskStatus.WAITING_FOR_DIFF_APPROVAL: frozenset({TaskStatus.READY_FOR_PR}),
    TaskStatus.READY_FOR_PR: frozenset({TaskStatus.PR_CREATED}),
}
TRANSITIONS[TaskStatus.PLANNING] = TRANSITIONS[TaskStatus.QUEUED]
TRANSITIONS[TaskStatus.RUNNING] = TRANSITIONS[TaskStatus.QUEUED]

# Cancel is allowed from every non-terminal status.
for _status in _NON_TERMINAL:
    TRANSITIONS[_status] = TRANSITIONS.get(_status, frozenset()) | {TaskStatus.CANCELLED}
for _status in TERMINAL_STATUSES:
    TRANSITIONS[_status] = frozenset()


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(raw: Any, field: str) -> datetime:
    if not isinstance(raw, str) or not raw:
        raise MalformedRecordError(f"{field} must be an ISO-8601 string")
    try:
        ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedRecordError(f"{field} is not a valid timestamp: {raw!r}") from e
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _format_ts(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# snake_case attribute -> persisted key
RECORD_KEYS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "description": "description",
    "repo": "repo",
    "status": "status",
    "agent_session_id": "agentSessionId",
    "pull_request_url": "pullRequestUrl",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "error": "error",
}


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    repo: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    agent_session_id: str | None = None
    pull_request_url: str | None = None
    error: str | None = None

    def check_transition(self, target: TaskStatus) -> None:
        """Raise InvalidStateError unless `status -> target` is a lifecycle edge."""
        if not can_transition(self.status, target):
            raise InvalidStateError(
                self.id, self.status, f"transition to {target} is not allowed"
            )

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted document (camelCase keys, ISO timestamps)."""
        record: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "repo": self.repo,
            "status": self.status.value,
            "createdAt": _format_ts(self.created_at),
            "updatedAt": _format_ts(self.updated_at),
        }
        # Optional attributes are omitted while unset.
        if self.agent_session_id is not None:
            record["agentSessionId"] = self.agent_session_id
        if self.pull_request_url is not None:
            record["pullRequestUrl"] = self.pull_request_url
        if self.error is not None:
            record["error"] = self.error
        return record

    @classmethod
    def from_record(cls, record: Any) -> Task:
        if not isinstance(record, dict):
            raise MalformedRecordError("task record must be a JSON object")

        for key in ("id", "title", "description", "repo", "status"):
            if not isinstance(record.get(key), str):
                raise MalformedRecordError(f"{key} is missing or not a string")

        try:
            status = TaskStatus(record["status"])
        except ValueError as e:
            raise MalformedRecordError(f"unknown status {record['status']!r}") from e

        def _opt(key: str) -> str | None:
            val = record.get(key)
            if val is None:
                return None
            if not isinstance(val, str):
                raise MalformedRecordError(f"{key} must be a string")
            return val

        return cls(
            id=record["id"],
            title=record["title"],
            description=record["description"],
            repo=record["repo"],
            status=status,
            created_at=_parse_ts(record.get("createdAt"), "createdAt"),
            updated_at=_parse_ts(record.get("updatedAt"), "updatedAt"),
            agent_session_id=_opt("agentSessionId"),
            pull_request_url=_opt("pullRequestUrl"),
            error=_opt("error"),
        )
