# src/agent_orchestrator/tasks/task_service.py

from __future__ import annotations

import logging
import uuid

from ..core.errors import InvalidStateError, TaskNotFoundError
from ..core.ports import AgentClient, PullRequestClient, TaskRepo
from .task_models import Task, TaskStatus, utcnow

logger = logging.getLogger(__name__)


class TaskService:
    """
    Command handlers: the user-driven side of the task lifecycle.

    Each call validates the current status, talks to the agent/source-hosting
    client and persists the resulting state through the TaskRepo. A rejected
    command (unknown id, wrong status, failed remote call) leaves the record
    untouched, except where noted on the method.
    """

    def __init__(
        self,
        task_repo: TaskRepo,
        agent: AgentClient,
        pull_requests: PullRequestClient,
        *,
        default_repo: str = "",
        default_base_branch: str = "main",
    ) -> None:
        self._repo = task_repo
        self._agent = agent
        self._pull_requests = pull_requests
        self._default_repo = default_repo
        self._default_base_branch = default_base_branch or "main"

    def _require(self, task_id: str) -> Task:
        task = self._repo.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def create_task(self, title: str, description: str, repo: str | None = None) -> Task:
        """
        Persist a NEW task and immediately start its agent session.

        Session failure is recorded on the task (FAILED + error) instead of
        being raised, so the returned task is PLANNING or FAILED.
        """
        if not title or not title.strip():
            raise ValueError("title is required")
        if not description or not description.strip():
            raise ValueError("description is required")
        target_repo = (repo or self._default_repo or "").strip()
        if not target_repo:
            raise ValueError("repo is required (no default repository configured)")

        now = utcnow()
        task = Task(
            id=uuid.uuid4().hex,
            title=title.strip(),
            description=description.strip(),
            repo=target_repo,
            status=TaskStatus.NEW,
            created_at=now,
            updated_at=now,
        )
        self._repo.save(task)
        logger.info("Task created id=%s repo=%s", task.id, task.repo)

        try:
            session_id = await self._agent.create_session(repo=task.repo, description=task.description)
        except Exception as e:
            logger.warning("Session creation failed task_id=%s", task.id, exc_info=True)
            return self._repo.update(
                task.id, status=TaskStatus.FAILED, error=str(e) or type(e).__name__
            )

        return self._repo.update(task.id, status=TaskStatus.PLANNING, agent_session_id=session_id)

    async def list_tasks(self) -> list[Task]:
        return self._repo.list()

    async def get_task(self, task_id: str) -> Task:
        return self._require(task_id)

    async def approve_task(self, task_id: str) -> Task:
        """Approve the pending plan or diff, depending on which one the task waits for."""
        task = self._require(task_id)
        if not task.agent_session_id:
            raise InvalidStateError(task.id, task.status, "task has no agent session")

        if task.status == TaskStatus.WAITING_FOR_PLAN_APPROVAL:
            await self._agent.approve_plan(task.agent_session_id)
            new_status = TaskStatus.RUNNING
        elif task.status == TaskStatus.WAITING_FOR_DIFF_APPROVAL:
            await self._agent.approve_diff(task.agent_session_id)
            new_status = TaskStatus.READY_FOR_PR
        else:
            raise InvalidStateError(task.id, task.status, "task is not waiting for approval")

        updated = self._repo.update(task.id, status=new_status)
        logger.info("Task %s approved -> %s", task.id, new_status.value)
        return updated

    async def cancel_task(self, task_id: str) -> Task:
        """
        Cancel locally; the remote cancel is best-effort.

        The task ends CANCELLED even when the agent refuses or is unreachable.
        """
        task = self._require(task_id)
        task.check_transition(TaskStatus.CANCELLED)

        if task.agent_session_id:
            try:
                await self._agent.cancel_session(task.agent_session_id)
            except Exception:
                logger.warning(
                    "Remote cancel failed task_id=%s session_id=%s",
                    task.id,
                    task.agent_session_id,
                    exc_info=True,
                )

        updated = self._repo.update(task.id, status=TaskStatus.CANCELLED)
        logger.info("Task %s -> CANCELLED", task.id)
        return updated

    async def create_pr_for_task(
        self,
        task_id: str,
        branch: str,
        title: str | None = None,
        body: str | None = None,
    ) -> Task:
        task = self._require(task_id)
        if task.status != TaskStatus.READY_FOR_PR:
            raise InvalidStateError(task.id, task.status, "task is not ready for a pull request")
        if not branch or not branch.strip():
            raise ValueError("branch is required")

        pr_url = await self._pull_requests.create_pull_request(
            repo=task.repo,
            branch=branch.strip(),
            title=title or task.title,
            body=body or task.description,
            base=self._default_base_branch,
        )

        updated = self._repo.update(task.id, status=TaskStatus.PR_CREATED, pull_request_url=pr_url)
        logger.info("Task %s -> PR_CREATED url=%s", task.id, pr_url)
        return updated
