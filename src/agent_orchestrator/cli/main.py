# src/agent_orchestrator/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs:
- the reconciler in the background for the whole process lifetime,
- the console REPL in the foreground (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from ..cli.bootstrap import close_state, create_initial_state
from ..cli.console import run_console_loop
from ..config import Settings, get_settings
from ..logging_setup import setup_logging
from ..tasks.reconciler import ReconcilerRunner

logger = logging.getLogger(__name__)


async def _serve(settings: Settings) -> None:
    state = create_initial_state(settings=settings)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms do not support signal handlers on the loop.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    try:
        async with ReconcilerRunner(
            state.task_store,
            state.agent,
            interval_seconds=settings.poll_interval_seconds,
        ):
            if settings.console_enabled:
                console = asyncio.create_task(run_console_loop(state))
                stopper = asyncio.create_task(stop.wait())
                await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
                for t in (console, stopper):
                    t.cancel()
                await asyncio.gather(console, stopper, return_exceptions=True)
            else:
                logger.info("Console disabled. Running the reconciler only. Press Ctrl+C to stop.")
                await stop.wait()
    finally:
        await close_state(state)


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    missing = settings.missing_credentials()
    if missing:
        logger.error("Missing required configuration: %s", ", ".join(missing))
        sys.exit(2)

    try:
        asyncio.run(_serve(settings))
    except KeyboardInterrupt:
        pass
    logger.info("Bye.")


if __name__ == "__main__":
    main()
