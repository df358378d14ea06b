# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from agent_orchestrator.gateway import GatewayRegistry, build_gateway
from agent_orchestrator.tasks.task_service import TaskService
from agent_orchestrator.tasks.task_store import JsonTaskStore

from .fakes import FakeAgentClient, FakePullRequestClient


@pytest.fixture()
def store(tmp_path: Path) -> JsonTaskStore:
    """
    Real JSON store in a per-test directory.

    We keep the real store here because its update semantics (updatedAt,
    not-found, conflicts) are part of what the handler tests check.
    """
    return JsonTaskStore(tmp_path / "tasks")


@pytest.fixture()
def agent() -> FakeAgentClient:
    return FakeAgentClient()


@pytest.fixture()
def pull_requests() -> FakePullRequestClient:
    return FakePullRequestClient()


@pytest.fixture()
def service(store: JsonTaskStore, agent: FakeAgentClient, pull_requests: FakePullRequestClient) -> TaskService:
    return TaskService(store, agent, pull_requests, default_repo="org/default")


@pytest.fixture()
def gateway(service: TaskService) -> GatewayRegistry:
    return build_gateway(service)
