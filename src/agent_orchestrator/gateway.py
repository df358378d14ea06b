# src/agent_orchestrator/gateway.py

from __future__ import annotations

"""
Command gateway: named methods external callers invoke.

Methods take a params dict and return JSON-ready data (task records).
Transport and authentication belong to whatever hosts the registry.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .core.errors import TaskNotFoundError
from .tasks.task_service import TaskService

logger = logging.getLogger(__name__)

METHOD_PREFIX = "orchestrator."

GatewayMethod = Callable[[dict[str, Any]], Awaitable[Any]]


def _param(params: dict[str, Any], name: str) -> str:
    value = params.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"missing required parameter: {name}")
    return value


def _opt_param(params: dict[str, Any], name: str) -> str | None:
    value = params.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"parameter {name} must be a string")
    return value


class GatewayRegistry:
    """Method-name -> coroutine registry (`orchestrator.createTask`, ...)."""

    def __init__(self) -> None:
        self._methods: dict[str, GatewayMethod] = {}

    def register(self, name: str, method: GatewayMethod) -> None:
        self._methods[name] = method

    def names(self) -> list[str]:
        return sorted(self._methods)

    async def call(self, name: str, params: dict[str, Any] | None = None) -> Any:
        method = self._methods.get(name)
        if method is None:
            raise KeyError(f"unknown gateway method: {name}")
        logger.debug("Gateway call %s", name)
        return await method(dict(params or {}))


def build_gateway(service: TaskService) -> GatewayRegistry:
    """Expose the TaskService command handlers under their gateway names."""
    registry = GatewayRegistry()

    async def create_task(params: dict[str, Any]) -> dict[str, Any]:
        task = await service.create_task(
            _param(params, "title"),
            _param(params, "description"),
            _opt_param(params, "repo"),
        )
        return task.to_record()

    async def list_tasks(params: dict[str, Any]) -> list[dict[str, Any]]:
        return [t.to_record() for t in await service.list_tasks()]

    async def get_task(params: dict[str, Any]) -> dict[str, Any] | None:
        try:
            task = await service.get_task(_param(params, "id"))
        except TaskNotFoundError:
            return None
        return task.to_record()

    async def approve_task(params: dict[str, Any]) -> dict[str, Any]:
        return (await service.approve_task(_param(params, "id"))).to_record()

    async def cancel_task(params: dict[str, Any]) -> dict[str, Any]:
        return (await service.cancel_task(_param(params, "id"))).to_record()

    async def create_pr_for_task(params: dict[str, Any]) -> dict[str, Any]:
        task = await service.create_pr_for_task(
            _param(params, "id"),
            _param(params, "branch"),
            title=_opt_param(params, "title"),
            body=_opt_param(params, "body"),
        )
        return task.to_record()

    registry.register(METHOD_PREFIX + "createTask", create_task)
    registry.register(METHOD_PREFIX + "listTasks", list_tasks)
    registry.register(METHOD_PREFIX + "getTask", get_task)
    registry.register(METHOD_PREFIX + "approveTask", approve_task)
    registry.register(METHOD_PREFIX + "cancelTask", cancel_task)
    registry.register(METHOD_PREFIX + "createPrForTask", create_pr_for_task)
    return registry
