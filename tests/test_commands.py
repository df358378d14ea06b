# tests/test_commands.py

from __future__ import annotations

from types import SimpleNamespace

import pytest

from agent_orchestrator.cli.commands import CommandRegistry, registry
from agent_orchestrator.gateway import GatewayRegistry


@pytest.fixture()
def state(gateway: GatewayRegistry) -> SimpleNamespace:
    """Only the gateway is needed by the console commands."""
    return SimpleNamespace(gateway=gateway)


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Cannot parse" in (await reg.handle(state, '/create "unterminated') or "")


@pytest.mark.asyncio
async def test_create_list_get_cancel_commands(state) -> None:
    reply = await registry.handle(state, '/create "fix bug" "the build is red" org/app')
    assert reply is not None
    assert "[PLANNING]" in reply
    task_id = reply.split()[0]

    listing = await registry.handle(state, "/list")
    assert task_id in (listing or "")

    shown = await registry.handle(state, f"/get {task_id}")
    assert "session: s1" in (shown or "")

    cancelled = await registry.handle(state, f"/cancel {task_id}")
    assert "[CANCELLED]" in (cancelled or "")


@pytest.mark.asyncio
async def test_errors_are_rendered_as_text(state) -> None:
    assert (await registry.handle(state, "/approve missing")) == "Error: Task not found: missing"
    assert "Task not found" in (await registry.handle(state, "/get missing") or "")
    assert (await registry.handle(state, "/pr onlyid") or "").startswith("Usage:")


@pytest.mark.asyncio
async def test_help_lists_commands(state) -> None:
    text = await registry.handle(state, "/help") or ""
    for name in ("create", "list", "get", "approve", "cancel", "pr"):
        assert f"/{name}" in text
