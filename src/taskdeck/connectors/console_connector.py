# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..cli.commands import format_task_list
from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

LineReader = Callable[[str], Awaitable[str]]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def _read_stdin(prompt: str) -> str:
    """
    input() on a daemon thread; the line comes back through call_soon_threadsafe.

    The loop stays free for change-feed refreshes, and cancelling the awaiting task
    (Ctrl+C) does not wait for the blocked input(): the thread dies with the process.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def deliver(line: str, exc: Exception | None) -> None:
        if fut.done():
            return
        if exc is not None:
            fut.set_exception(exc)
        else:
            fut.set_result(line)

    def worker() -> None:
        try:
            line, exc = input(prompt), None
        except Exception as e:
            line, exc = "", e
        with contextlib.suppress(RuntimeError):
            # Loop already closed: nobody is waiting for this line.
            loop.call_soon_threadsafe(deliver, line, exc)

    threading.Thread(target=worker, name="console-stdin", daemon=True).start()
    return await fut


class _ViewNotifier:
    """
    Print a one-line notice when the list changes behind the user's back
    (change feed), but stay quiet while a command of our own is running.
    """

    def __init__(self, state: AppState) -> None:
        self._state = state
        self.busy = False
        self.seen: tuple[Task, ...] = state.collection.tasks

    def __call__(self, view: tuple[Task, ...]) -> None:
        if self.busy or view == self.seen:
            return
        self.seen = view
        _print_ts(f"[sync] Task list changed ({len(view)} task(s)). Use /list to view.")

    def mark_seen(self) -> None:
        self.seen = self._state.collection.tasks


async def run_console_loop(state: AppState, *, read_line: LineReader | None = None) -> None:
    read = read_line or _read_stdin
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "taskdeck"))

    logger.info("Console connector started (backend=%s).", getattr(state.backend, "name", "?"))
    _print_ts(f"[{app_name}] Type /help for commands. Use /exit to quit.")
    print(format_task_list(state.collection.tasks), flush=True)

    notifier = _ViewNotifier(state)
    state.collection.add_listener(notifier)

    def emit(text: str) -> None:
        _print_ts(text)

    try:
        while True:
            try:
                user_input = (await read(">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            notifier.busy = True
            try:
                reply = await command_registry.handle(state, user_input, emit=emit, ask=read)
            except EOFError:
                _print_ts("Cancelled.")
                continue
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."
            finally:
                notifier.busy = False
                notifier.mark_seen()

            if reply is None:
                reply = "Not a command. Use /help to list available commands."
            _print_ts(reply)
    finally:
        state.collection.remove_listener(notifier)

    logger.info("Console connector finished.")
