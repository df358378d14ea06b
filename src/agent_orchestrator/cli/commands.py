# src/agent_orchestrator/cli/commands.py

from __future__ import annotations

import logging
import shlex
from collections.abc import Awaitable, Callable
from typing import Any

from ..core.errors import OrchestratorError
from ..core.state import AppState
from ..gateway import METHOD_PREFIX

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console (/help, /list, /approve, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like '/command arg "quoted arg"'.
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Cannot parse command: {e}"
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return await handler(state, args)
        except (OrchestratorError, ValueError) as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def format_task(record: dict[str, Any]) -> str:
    lines = [
        f"{record['id']}  [{record['status']}]  {record['title']}",
        f"  repo: {record['repo']}",
    ]
    if record.get("agentSessionId"):
        lines.append(f"  session: {record['agentSessionId']}")
    if record.get("pullRequestUrl"):
        lines.append(f"  pull request: {record['pullRequestUrl']}")
    if record.get("error"):
        lines.append(f"  error: {record['error']}")
    lines.append(f"  updated: {record['updatedAt']}")
    return "\n".join(lines)


async def _call(state: AppState, method: str, **params: Any) -> Any:
    return await state.gateway.call(METHOD_PREFIX + method, params)


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_create(state: AppState, args: list[str]) -> str:
    """/create "title" "description" [owner/repo]"""
    if len(args) < 2:
        return 'Usage: /create "title" "description" [owner/repo]'
    record = await _call(
        state,
        "createTask",
        title=args[0],
        description=args[1],
        repo=args[2] if len(args) > 2 else None,
    )
    return format_task(record)


async def cmd_list(state: AppState, args: list[str]) -> str:
    records = await _call(state, "listTasks")
    if not records:
        return "No tasks."
    lines = [f"Tasks ({len(records)}):"]
    for r in records:
        lines.append(f"  {r['id']}  [{r['status']}]  {r['title']}  ({r['repo']})")
    return "\n".join(lines)


async def cmd_get(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /get <task id>"
    record = await _call(state, "getTask", id=args[0])
    if record is None:
        return f"Task not found: {args[0]}"
    return format_task(record)


async def cmd_approve(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /approve <task id>"
    return format_task(await _call(state, "approveTask", id=args[0]))


async def cmd_cancel(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /cancel <task id>"
    return format_task(await _call(state, "cancelTask", id=args[0]))


async def cmd_pr(state: AppState, args: list[str]) -> str:
    """/pr <task id> <branch> ["title"] ["body"]"""
    if len(args) < 2:
        return 'Usage: /pr <task id> <branch> ["title"] ["body"]'
    record = await _call(
        state,
        "createPrForTask",
        id=args[0],
        branch=args[1],
        title=args[2] if len(args) > 2 else None,
        body=args[3] if len(args) > 3 else None,
    )
    return format_task(record)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "create", cmd_create, help_text='Create a task: /create "title" "description" [owner/repo].'
)
registry.register("list", cmd_list, help_text="List all tasks.", aliases=["ls"])
registry.register("get", cmd_get, help_text="Show one task: /get <id>.", aliases=["show"])
registry.register("approve", cmd_approve, help_text="Approve the pending plan or diff: /approve <id>.")
registry.register("cancel", cmd_cancel, help_text="Cancel a task: /cancel <id>.")
registry.register(
    "pr", cmd_pr, help_text='Open a pull request: /pr <id> <branch> ["title"] ["body"].'
)
