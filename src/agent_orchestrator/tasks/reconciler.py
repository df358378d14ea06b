# src/agent_orchestrator/tasks/reconciler.py

from __future__ import annotations

"""
Reconciliation loop.

A small polling loop that:
- lists stored tasks,
- picks the in-flight ones that carry a remote session id,
- fetches each session's remote state,
- advances the local status when the remote state implies a transition.

A failed remote fetch is logged and the task is simply retried on the next tick.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import TracebackType

from ..core.errors import ConflictError, OrchestratorError
from ..core.ports import AgentClient, TaskRepo
from .task_models import POLLING_STATUSES, Task, TaskStatus, can_transition

logger = logging.getLogger(__name__)

# Remote session state label -> local status. Labels are compared upper-cased;
# anything not listed leaves the task unchanged.
DEFAULT_REMOTE_STATE_MAP: Mapping[str, TaskStatus] = {
    "WAITING_FOR_USER_PLAN_APPROVAL": TaskStatus.WAITING_FOR_PLAN_APPROVAL,
    "WAITING_FOR_USER_DIFF_APPROVAL": TaskStatus.WAITING_FOR_DIFF_APPROVAL,
    "DONE": TaskStatus.READY_FOR_PR,
    "FAILED": TaskStatus.FAILED,
    "ERROR": TaskStatus.FAILED,
}


def map_remote_state(
        remote_state: str,
        state_map: Mapping[str, TaskStatus] = DEFAULT_REMOTE_STATE_MAP,
) -> TaskStatus | None:
    return state_map.get((remote_state or "").strip().upper())


@dataclass(slots=True)
class ReconcileReport:
    """Per-tick outcome, by task id."""

    checked: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


async def _reconcile_task(
        task: Task,
        task_repo: TaskRepo,
        agent: AgentClient,
        state_map: Mapping[str, TaskStatus],
        report: ReconcileReport,
) -> None:
    session_id = task.agent_session_id
    if not session_id:
        logger.debug("Task %s has no agent session; skipping", task.id)
        return

    try:
        remote_state = await agent.get_session_state(session_id)
    except Exception:
        logger.exception("Polling failed task_id=%s session_id=%s", task.id, session_id)
        report.failed.append(task.id)
        return

    new_status = map_remote_state(remote_state, state_map)
    if new_status is None:
        logger.debug("Task %s: remote state %r has no mapping", task.id, remote_state)
        return
    if new_status == task.status:
        return
    if not can_transition(task.status, new_status):
        logger.warning(
            "Task %s: remote state %r would move %s -> %s; ignoring",
            task.id,
            remote_state,
            task.status.value,
            new_status.value,
        )
        return

    changes: dict[str, object] = {"status": new_status}
    if new_status == TaskStatus.FAILED:
        changes["error"] = f"Agent session {session_id} ended in state {remote_state}"

    try:
        task_repo.update(task.id, expected_updated_at=task.updated_at, **changes)
    except ConflictError:
        logger.info("Task %s changed during polling; retrying next tick", task.id)
        return
    except OrchestratorError:
        logger.exception("Status update failed task_id=%s", task.id)
        report.failed.append(task.id)
        return

    report.updated.append(task.id)
    logger.info("Task %s -> %s (remote=%s)", task.id, new_status.value, remote_state)


async def reconcile_once(
        task_repo: TaskRepo,
        agent: AgentClient,
        *,
        state_map: Mapping[str, TaskStatus] = DEFAULT_REMOTE_STATE_MAP,
) -> ReconcileReport:
    """
    One reconciliation tick.

    Tasks are reconciled concurrently; a slow remote call only delays its own task.
    """
    report = ReconcileReport()
    tasks = [
        t for t in task_repo.list()
        if t.status in POLLING_STATUSES and t.agent_session_id
    ]
    report.checked.extend(t.id for t in tasks)
    if tasks:
        await asyncio.gather(
            *(_reconcile_task(t, task_repo, agent, state_map, report) for t in tasks)
        )
    return report


async def run_reconciler(
        task_repo: TaskRepo,
        agent: AgentClient,
        *,
        interval_seconds: float = 10.0,
        state_map: Mapping[str, TaskStatus] = DEFAULT_REMOTE_STATE_MAP,
) -> None:
    """
    Poll forever on a fixed interval. Ticks never overlap.

    To stop the loop, cancel the coroutine/task (or use ReconcilerRunner).
    """
    sleep_s = max(0.01, float(interval_seconds))
    logger.info("Reconciler started interval=%.2fs", sleep_s)

    while True:
        try:
            report = await reconcile_once(task_repo, agent, state_map=state_map)
            if report.updated or report.failed:
                logger.debug(
                    "Reconcile tick checked=%d updated=%d failed=%d",
                    len(report.checked),
                    len(report.updated),
                    len(report.failed),
                )
        except Exception:
            logger.exception("Reconcile tick failed")

        await asyncio.sleep(sleep_s)


class ReconcilerRunner:
    """
    Owns the reconciler task for a scoped lifetime.

        async with ReconcilerRunner(repo, agent, interval_seconds=10):
            ...  # loop runs here; stopped on every exit path
    """

    def __init__(
            self,
            task_repo: TaskRepo,
            agent: AgentClient,
            *,
            interval_seconds: float = 10.0,
            state_map: Mapping[str, TaskStatus] = DEFAULT_REMOTE_STATE_MAP,
    ) -> None:
        self._task_repo = task_repo
        self._agent = agent
        self._interval_seconds = interval_seconds
        self._state_map = state_map
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            run_reconciler(
                self._task_repo,
                self._agent,
                interval_seconds=self._interval_seconds,
                state_map=self._state_map,
            ),
            name="reconciler",
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Reconciler stopped")

    async def __aenter__(self) -> ReconcilerRunner:
        self.start()
        return self

    async def __aexit__(
            self,
            exc_type: type[BaseException] | None,
            exc: BaseException | None,
            tb: TracebackType | None,
    ) -> None:
        await self.stop()
