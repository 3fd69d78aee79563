# src/taskdeck/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
import shlex
from collections.abc import Awaitable, Callable
from typing import Any

from ..core.state import AppState
from ..tasks.task_models import Attachment, Task

CommandEmitter = Callable[[str], None]
Prompt = Callable[[str], Awaitable[str]]
# Handlers: (state, args) or (state, args, emit, ask); sync or async.
CommandHandler = Callable[..., Any]

logger = logging.getLogger(__name__)

YES_ANSWERS = {"y", "yes"}


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
        ask: Prompt | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            # Unbalanced quote (e.g. "don't"): plain whitespace split.
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 4

        if nparams >= 4:
            result = handler(state, args, emit, ask)
        else:
            result = handler(state, args)

        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Quit.")
        return "\n".join(lines)


registry = CommandRegistry()


def format_task(task: Task) -> str:
    lines = [f"#{task.id} {task.title}", f"    {task.description}"]
    if task.image_url:
        lines.append(f"    image: {task.image_url}")
    if task.video_url:
        lines.append(f"    video: {task.video_url}")
    return "\n".join(lines)


def format_task_list(tasks: tuple[Task, ...] | list[Task]) -> str:
    if not tasks:
        return "No tasks yet. Use /add to create one."
    return "\n".join(format_task(t) for t in tasks)


def _parse_task_id(raw: str) -> int | None:
    try:
        return int(raw.lstrip("#"))
    except ValueError:
        return None


def _pop_option(args: list[str], *names: str) -> str | None:
    """Remove `--name VALUE` from args (in place) and return VALUE."""
    for i, a in enumerate(args):
        if a in names and i + 1 < len(args):
            value = args[i + 1]
            del args[i : i + 2]
            return value
    return None


async def _ask_field(ask: Prompt, label: str, default: str) -> str:
    prompt = f"{label} [{default}]: " if default else f"{label}: "
    answer = (await ask(prompt)).strip()
    return answer or default


def _load_attachment(path: str) -> Attachment | None:
    if not path:
        return None
    return Attachment.from_path(path)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    return format_task_list(state.collection.tasks)


async def cmd_refresh(state: AppState, args: list[str]) -> str:
    tasks = await state.collection.refresh()
    failure = state.collection.last_failure
    if failure is not None:
        return f"Refresh failed ({failure}); showing the last known list.\n{format_task_list(tasks)}"
    return format_task_list(tasks)


async def cmd_add(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
    ask: Prompt | None = None,
) -> str:
    """
    /add                                  -> fill the form interactively
    /add Title | Description              -> inline, no file prompts
    /add Title | Description --image P --video P
    """
    draft = state.draft
    args = list(args)

    image_opt = _pop_option(args, "--image", "-i")
    video_opt = _pop_option(args, "--video", "-v")
    if image_opt is not None:
        draft.image_path = image_opt
    if video_opt is not None:
        draft.video_path = video_opt

    raw = " ".join(args).strip()
    interactive = not raw

    if raw:
        title, sep, description = raw.partition("|")
        draft.title = title.strip()
        if sep:
            draft.description = description.strip()

    if ask is not None:
        if interactive or not draft.title:
            draft.title = await _ask_field(ask, "Title", draft.title)
        if interactive or not draft.description:
            draft.description = await _ask_field(ask, "Description", draft.description)
        if interactive:
            draft.image_path = await _ask_field(ask, "Image file (optional)", draft.image_path)
            draft.video_path = await _ask_field(ask, "Video file (optional)", draft.video_path)

    if not draft.title.strip() or not draft.description.strip():
        return "Title and description are required. Usage: /add Title | Description"

    try:
        image = _load_attachment(draft.image_path)
    except OSError as e:
        return f"Cannot read image file {draft.image_path!r}: {e.strerror or e}"
    try:
        video = _load_attachment(draft.video_path)
    except OSError as e:
        return f"Cannot read video file {draft.video_path!r}: {e.strerror or e}"

    if emit and (image or video):
        with contextlib.suppress(Exception):
            emit("Uploading attachments...")

    ok = await state.collection.create_with_attachments(
        draft.title,
        draft.description,
        image=image,
        video=video,
    )
    if not ok:
        # Keep the draft so the next /add starts from the same values.
        return f"Failed to add task: {state.collection.last_failure}"

    draft.clear()
    return f"Task added. {len(state.collection.tasks)} task(s) in the list."


async def cmd_edit(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
    ask: Prompt | None = None,
) -> str:
    """/edit <id> <new description>"""
    if not args:
        return "Usage: /edit <id> <new description>"

    task_id = _parse_task_id(args[0])
    if task_id is None:
        return f"Invalid task id: {args[0]!r}."

    description = " ".join(args[1:]).strip()
    if not description and ask is not None:
        description = (await ask("New description: ")).strip()
    if not description:
        return "Usage: /edit <id> <new description>"

    if not await state.collection.update(task_id, description):
        return f"Failed to update task #{task_id}: {state.collection.last_failure}"
    return f"Task #{task_id} updated."


async def cmd_delete(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
    ask: Prompt | None = None,
) -> str:
    """
    /delete <id>      -> asks for confirmation
    /delete <id> -y   -> no confirmation
    """
    flags = {a for a in args if a in ("-y", "--yes")}
    rest = [a for a in args if a not in flags]
    if not rest:
        return "Usage: /delete <id> [-y]"

    task_id = _parse_task_id(rest[0])
    if task_id is None:
        return f"Invalid task id: {rest[0]!r}."

    if not flags:
        if ask is None:
            return f"Confirmation required: /delete {task_id} -y"
        answer = (await ask("Delete this task? [y/N] ")).strip().lower()
        if answer not in YES_ANSWERS:
            return "Delete cancelled."

    if not await state.collection.delete(task_id):
        return f"Failed to delete task #{task_id}: {state.collection.last_failure}"
    return f"Task #{task_id} deleted."


def cmd_status(state: AppState, args: list[str]) -> str:
    failure = state.collection.last_failure
    session = "anonymous" if state.session.active else "none (unauthenticated)"
    return (
        "Status:\n"
        f"  Backend: {getattr(state.backend, 'name', '?')}\n"
        f"  Session: {session}\n"
        f"  Change feed: {state.feed.state.value} ({state.feed.events_received} events)\n"
        f"  Tasks in view: {len(state.collection.tasks)}\n"
        f"  Last failure: {failure if failure is not None else '-'}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the task list (newest first).", aliases=["ls"])
registry.register("refresh", cmd_refresh, help_text="Re-fetch the task list from the server.")
registry.register(
    "add", cmd_add, help_text="Create a task: /add | /add Title | Description [--image P] [--video P]."
)
registry.register("edit", cmd_edit, help_text="Update a description: /edit <id> <text>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id> [-y].", aliases=["rm"])
registry.register("status", cmd_status, help_text="Show backend/session/feed status.")
