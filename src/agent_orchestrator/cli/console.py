# src/agent_orchestrator/cli/console.py

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime

from ..core.state import AppState
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _start_stdin_reader(
    loop: asyncio.AbstractEventLoop,
    lines: asyncio.Queue[str | None],
    prompt_ready: threading.Event,
) -> threading.Thread:
    """
    Read stdin in a daemon thread so a pending input() never blocks shutdown.

    None is queued on EOF / Ctrl+C. The thread prompts again only after the
    previous line has been answered (prompt_ready).
    """

    def _read() -> None:
        while True:
            prompt_ready.wait()
            prompt_ready.clear()
            try:
                line = input(">>> ")
            except (EOFError, KeyboardInterrupt):
                loop.call_soon_threadsafe(lines.put_nowait, None)
                return
            loop.call_soon_threadsafe(lines.put_nowait, line)

    thread = threading.Thread(target=_read, name="console-stdin", daemon=True)
    thread.start()
    return thread


async def run_console_loop(state: AppState) -> None:
    """Handle slash commands from stdin until /exit or EOF."""
    logger.info("Console started.")
    _print_ts("[CONSOLE] Type /help for commands. Use /exit to quit.\n")

    lines: asyncio.Queue[str | None] = asyncio.Queue()
    prompt_ready = threading.Event()
    _start_stdin_reader(asyncio.get_running_loop(), lines, prompt_ready)
    prompt_ready.set()

    while True:
        raw = await lines.get()
        if raw is None:
            logger.info("Console EOF received, exiting.")
            print()
            break

        line = raw.strip()
        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if line:
            try:
                reply = await command_registry.handle(state, line)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is None:
                reply = "Commands start with '/'. Use /help to list them."
            _print_ts(reply)

        prompt_ready.set()

    logger.info("Console finished.")
