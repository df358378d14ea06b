# tests/test_task_service.py

from __future__ import annotations

import pytest

from agent_orchestrator.core.errors import InvalidStateError, RemoteCallError, TaskNotFoundError
from agent_orchestrator.tasks.task_models import TaskStatus
from agent_orchestrator.tasks.task_service import TaskService
from agent_orchestrator.tasks.task_store import JsonTaskStore

from .fakes import FakeAgentClient, FakePullRequestClient, make_task


@pytest.mark.asyncio
async def test_create_task_starts_session(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    task = await service.create_task("fix bug", "the build is red", repo="org/app")

    assert task.status == TaskStatus.PLANNING
    assert task.agent_session_id == "s1"
    assert task.repo == "org/app"
    assert task.updated_at > task.created_at
    assert agent.calls == [("create_session", "org/app")]
    assert store.get(task.id) == task


@pytest.mark.asyncio
async def test_create_task_uses_default_repo(service: TaskService) -> None:
    task = await service.create_task("fix bug", "the build is red")
    assert task.repo == "org/default"


@pytest.mark.asyncio
async def test_create_task_records_session_failure(service: TaskService, agent: FakeAgentClient) -> None:
    agent.fail.add("create_session")

    task = await service.create_task("fix bug", "the build is red", repo="org/app")

    assert task.status == TaskStatus.FAILED
    assert task.agent_session_id is None
    assert task.error and "create_session" in task.error


@pytest.mark.asyncio
async def test_create_task_validates_input(store: JsonTaskStore, agent: FakeAgentClient) -> None:
    service = TaskService(store, agent, FakePullRequestClient())
    with pytest.raises(ValueError):
        await service.create_task("", "desc", repo="org/app")
    with pytest.raises(ValueError):
        await service.create_task("title", "desc")  # no repo, no default
    assert store.list() == []


@pytest.mark.asyncio
async def test_create_task_ids_are_unique(service: TaskService) -> None:
    a = await service.create_task("a", "first")
    b = await service.create_task("b", "second")
    assert a.id != b.id
    assert [t.id for t in await service.list_tasks()] == [a.id, b.id]


@pytest.mark.asyncio
async def test_get_task_unknown_id(service: TaskService) -> None:
    with pytest.raises(TaskNotFoundError):
        await service.get_task("missing")


@pytest.mark.asyncio
async def test_approve_plan_moves_to_running(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    store.save(make_task("t1", status=TaskStatus.WAITING_FOR_PLAN_APPROVAL, agent_session_id="s1"))

    task = await service.approve_task("t1")

    assert task.status == TaskStatus.RUNNING
    assert agent.calls == [("approve_plan", "s1")]


@pytest.mark.asyncio
async def test_approve_diff_moves_to_ready_for_pr(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    store.save(make_task("t1", status=TaskStatus.WAITING_FOR_DIFF_APPROVAL, agent_session_id="s1"))

    task = await service.approve_task("t1")

    assert task.status == TaskStatus.READY_FOR_PR
    assert agent.calls == [("approve_diff", "s1")]


@pytest.mark.asyncio
async def test_approve_running_task_is_rejected_without_write(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    original = make_task("t1", status=TaskStatus.RUNNING, agent_session_id="s1")
    store.save(original)

    with pytest.raises(InvalidStateError):
        await service.approve_task("t1")

    assert store.get("t1").updated_at == original.updated_at
    assert agent.calls == []


@pytest.mark.asyncio
async def test_approve_requires_task_and_session(service: TaskService, store: JsonTaskStore) -> None:
    with pytest.raises(TaskNotFoundError):
        await service.approve_task("missing")

    store.save(make_task("t2", status=TaskStatus.WAITING_FOR_PLAN_APPROVAL))
    with pytest.raises(InvalidStateError):
        await service.approve_task("t2")


@pytest.mark.asyncio
async def test_approve_remote_failure_propagates_without_write(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    original = make_task("t1", status=TaskStatus.WAITING_FOR_DIFF_APPROVAL, agent_session_id="s1")
    store.save(original)
    agent.fail.add("approve_diff")

    with pytest.raises(RemoteCallError):
        await service.approve_task("t1")

    assert store.get("t1") == original


@pytest.mark.asyncio
async def test_cancel_survives_remote_failure(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    store.save(make_task("t1", status=TaskStatus.RUNNING, agent_session_id="s1"))
    agent.fail.add("cancel_session")

    task = await service.cancel_task("t1")

    assert task.status == TaskStatus.CANCELLED
    assert agent.calls == [("cancel_session", "s1")]


@pytest.mark.asyncio
async def test_cancel_without_session_skips_remote_call(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    store.save(make_task("t1", status=TaskStatus.NEW))

    task = await service.cancel_task("t1")

    assert task.status == TaskStatus.CANCELLED
    assert agent.calls == []


@pytest.mark.asyncio
async def test_cancel_terminal_task_is_rejected(service: TaskService, store: JsonTaskStore) -> None:
    original = make_task("t1", status=TaskStatus.FAILED, error="boom")
    store.save(original)

    with pytest.raises(InvalidStateError):
        await service.cancel_task("t1")
    with pytest.raises(TaskNotFoundError):
        await service.cancel_task("missing")

    assert store.get("t1") == original


@pytest.mark.asyncio
async def test_create_pr_for_ready_task(service: TaskService, store: JsonTaskStore, pull_requests: FakePullRequestClient) -> None:
    store.save(make_task("t1", status=TaskStatus.READY_FOR_PR, agent_session_id="s1"))

    task = await service.create_pr_for_task("t1", branch="agent/s1")

    assert task.status == TaskStatus.PR_CREATED
    assert task.pull_request_url == "https://host/org/app/pull/7"
    call = pull_requests.calls[0]
    assert (call.repo, call.branch, call.base) == ("org/app", "agent/s1", "main")
    assert call.title == "fix bug"
    assert call.body == "fix the failing build"


@pytest.mark.asyncio
async def test_create_pr_with_explicit_title_and_body(service: TaskService, store: JsonTaskStore, pull_requests: FakePullRequestClient) -> None:
    store.save(make_task("t1", status=TaskStatus.READY_FOR_PR, agent_session_id="s1"))

    await service.create_pr_for_task("t1", "agent/s1", title="Fix CI", body="Details")

    assert pull_requests.calls[0].title == "Fix CI"
    assert pull_requests.calls[0].body == "Details"


@pytest.mark.asyncio
async def test_create_pr_rejected_when_not_ready(service: TaskService, store: JsonTaskStore, pull_requests: FakePullRequestClient) -> None:
    store.save(make_task("t1", status=TaskStatus.RUNNING, agent_session_id="s1"))

    with pytest.raises(InvalidStateError):
        await service.create_pr_for_task("t1", branch="agent/s1")

    task = store.get("t1")
    assert task.pull_request_url is None
    assert task.status == TaskStatus.RUNNING
    assert pull_requests.calls == []


@pytest.mark.asyncio
async def test_create_pr_remote_failure_leaves_task_ready(service: TaskService, store: JsonTaskStore, pull_requests: FakePullRequestClient) -> None:
    original = make_task("t1", status=TaskStatus.READY_FOR_PR, agent_session_id="s1")
    store.save(original)
    pull_requests.fail = True

    with pytest.raises(RemoteCallError):
        await service.create_pr_for_task("t1", branch="agent/s1")

    assert store.get("t1") == original


@pytest.mark.asyncio
async def test_full_lifecycle_with_reconciler(service: TaskService, store: JsonTaskStore, agent: FakeAgentClient) -> None:
    from agent_orchestrator.tasks.reconciler import reconcile_once

    task = await service.create_task("fix bug", "the build is red", repo="org/app")
    seen = [task.status]

    agent.states["s1"] = "WAITING_FOR_USER_PLAN_APPROVAL"
    await reconcile_once(store, agent)
    seen.append(store.get(task.id).status)

    seen.append((await service.approve_task(task.id)).status)

    agent.states["s1"] = "WAITING_FOR_USER_DIFF_APPROVAL"
    await reconcile_once(store, agent)
    seen.append(store.get(task.id).status)

    seen.append((await service.approve_task(task.id)).status)
    final = await service.create_pr_for_task(task.id, branch="agent/s1")
    seen.append(final.status)

    assert seen == [
        TaskStatus.PLANNING,
        TaskStatus.WAITING_FOR_PLAN_APPROVAL,
        TaskStatus.RUNNING,
        TaskStatus.WAITING_FOR_DIFF_APPROVAL,
        TaskStatus.READY_FOR_PR,
        TaskStatus.PR_CREATED,
    ]
    for prev, nxt in zip(seen, seen[1:]):
        store_task = make_task(status=prev)
        store_task.check_transition(nxt)


class _BrokenAgent(FakeAgentClient):
    """Agent whose calls fail with errors other than RemoteCallError."""

    async def create_session(self, *, repo: str, description: str) -> str:
        raise ConnectionError("agent unreachable")

    async def cancel_session(self, session_id: str) -> None:
        raise RuntimeError("remote cancel blew up")


@pytest.mark.asyncio
async def test_create_task_records_any_session_error(store: JsonTaskStore) -> None:
    service = TaskService(store, _BrokenAgent(), FakePullRequestClient())

    task = await service.create_task("fix bug", "the build is red", repo="org/app")

    assert task.status == TaskStatus.FAILED
    assert task.error == "agent unreachable"
    assert [t.status for t in store.list()] == [TaskStatus.FAILED]


@pytest.mark.asyncio
async def test_create_task_error_falls_back_to_exception_name(store: JsonTaskStore) -> None:
    class SilentAgent(FakeAgentClient):
        async def create_session(self, *, repo: str, description: str) -> str:
            raise RuntimeError()

    task = await TaskService(store, SilentAgent(), FakePullRequestClient()).create_task(
        "fix bug", "the build is red", repo="org/app"
    )

    assert task.status == TaskStatus.FAILED
    assert task.error == "RuntimeError"


@pytest.mark.asyncio
async def test_cancel_survives_unexpected_remote_error(store: JsonTaskStore) -> None:
    store.save(make_task("t1", status=TaskStatus.RUNNING, agent_session_id="s1"))
    service = TaskService(store, _BrokenAgent(), FakePullRequestClient())

    task = await service.cancel_task("t1")

    assert task.status == TaskStatus.CANCELLED
    assert store.get("t1").status == TaskStatus.CANCELLED
