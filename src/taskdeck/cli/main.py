# src/taskdeck/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, bootstraps the session and the list, then:
- runs the console REPL (form + list view), or
- with the console disabled, keeps the change feed running until SIGINT/SIGTERM.

The change feed is always torn down on exit.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import LineReader, run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.feed.stop()
    except Exception:
        logger.exception("Failed to stop the change feed.")

    try:
        await state.backend.close()
    except Exception:
        logger.debug("Backend close failed.", exc_info=True)


async def _run_headless(state: AppState) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms (Windows) have no loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    def log_view(view: tuple[Task, ...]) -> None:
        logger.info("Task list changed: %d task(s)", len(view))

    state.collection.add_listener(log_view)
    logger.info("Console disabled. Watching the change feed only. Press Ctrl+C to stop.")
    try:
        await stop.wait()
    finally:
        state.collection.remove_listener(log_view)


async def run_app(settings=None, *, read_line: LineReader | None = None) -> AppState:
    if settings is None:
        settings = get_settings()

    state = await create_initial_state(settings=settings)
    try:
        await state.session.ensure_session()
        await state.collection.refresh()
        await state.feed.start()

        if getattr(settings, "console_enabled", True):
            await run_console_loop(state, read_line=read_line)
        else:
            await _run_headless(state)
    finally:
        await _shutdown(state)
    return state


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_app(settings))

    logger.info("Bye.")


if __name__ == "__main__":
    main()
