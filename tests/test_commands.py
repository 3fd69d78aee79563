# tests/test_commands.py

from __future__ import annotations

import pytest

from taskdeck.cli.commands import CommandRegistry, registry
from taskdeck.core.state import AppState

from .fakes import FlakyTable, ScriptedReader


@pytest.mark.asyncio
async def test_command_registry_routes_2_and_4_params(state: AppState) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h4": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    async def h4(state, args, emit, ask):
        called["h4"] += 1
        if emit is not None:
            emit("note")
        return "h4:" + ",".join(args)

    reg.register("a", h2, "a")
    reg.register("b", h4, "b", aliases=["bee"])

    assert await reg.handle(state, "/a x") == "h2"
    assert await reg.handle(state, "/bee 'two words' z", emit=lambda _: None) == "h4:two words,z"
    assert called == {"h2": 1, "h4": 1}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state: AppState) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


@pytest.mark.asyncio
async def test_add_inline_creates_task(state: AppState) -> None:
    reply = await registry.handle(state, "/add Buy milk | 2%")

    assert reply is not None and reply.startswith("Task added")
    first = state.collection.tasks[0]
    assert (first.title, first.description, first.image_url, first.video_url) == ("Buy milk", "2%", None, None)
    assert state.draft.title == ""


@pytest.mark.asyncio
async def test_add_apostrophe_does_not_break_parsing(state: AppState) -> None:
    reply = await registry.handle(state, "/add Don't forget | call mom")
    assert reply is not None and reply.startswith("Task added")
    assert state.collection.tasks[0].title == "Don't forget"


@pytest.mark.asyncio
async def test_add_interactive_form_with_image(state: AppState, tmp_path) -> None:
    img = tmp_path / "cat.png"
    img.write_bytes(b"\x89PNG")
    reader = ScriptedReader(["Pets", "feed the cat", str(img), ""])

    reply = await registry.handle(state, "/add", ask=reader)

    assert reply is not None and reply.startswith("Task added")
    task = state.collection.tasks[0]
    assert task.title == "Pets"
    assert task.image_url is not None and task.image_url.endswith("-cat.png")
    assert task.video_url is None
    assert reader.prompts[0] == "Title: "


@pytest.mark.asyncio
async def test_add_missing_file_keeps_draft_and_creates_nothing(state: AppState, tmp_path) -> None:
    missing = tmp_path / "nope.mp4"
    reply = await registry.handle(state, f"/add Movie | night --video {missing}")

    assert reply is not None and "Cannot read video file" in reply
    assert state.collection.tasks == ()
    assert state.draft.title == "Movie"
    assert state.draft.description == "night"


@pytest.mark.asyncio
async def test_failed_submit_keeps_draft_as_defaults(state: AppState) -> None:
    table = FlakyTable(state.backend.table)
    state.collection._table = table
    table.fail.add("insert")

    reply = await registry.handle(state, "/add Buy milk | 2%")
    assert reply is not None and reply.startswith("Failed to add task")
    assert (state.draft.title, state.draft.description) == ("Buy milk", "2%")

    table.fail.clear()
    reader = ScriptedReader(["", "", "", ""])
    reply = await registry.handle(state, "/add", ask=reader)

    assert reply is not None and reply.startswith("Task added")
    assert reader.prompts[0] == "Title [Buy milk]: "
    assert state.collection.tasks[0].title == "Buy milk"


@pytest.mark.asyncio
async def test_add_requires_title_and_description(state: AppState) -> None:
    reply = await registry.handle(state, "/add Only a title")
    assert reply is not None and "required" in reply
    assert state.collection.tasks == ()


@pytest.mark.asyncio
async def test_edit_updates_description(state: AppState) -> None:
    await state.collection.create("Title", "old")
    task_id = state.collection.tasks[0].id

    reply = await registry.handle(state, f"/edit {task_id} new text here")
    assert reply == f"Task #{task_id} updated."
    assert state.collection.tasks[0].description == "new text here"

    reply = await registry.handle(state, "/edit 999 nothing")
    assert reply is not None and reply.startswith("Failed to update task #999")

    assert (await registry.handle(state, "/edit abc x") or "").startswith("Invalid task id")


@pytest.mark.asyncio
async def test_delete_asks_for_confirmation(state: AppState) -> None:
    await state.collection.create("a", "a")
    task_id = state.collection.tasks[0].id

    reply = await registry.handle(state, f"/delete {task_id}", ask=ScriptedReader(["n"]))
    assert reply == "Delete cancelled."
    assert len(state.collection.tasks) == 1

    reply = await registry.handle(state, f"/delete {task_id}")
    assert reply == f"Confirmation required: /delete {task_id} -y"

    reader = ScriptedReader(["y"])
    reply = await registry.handle(state, f"/delete {task_id}", ask=reader)
    assert reply == f"Task #{task_id} deleted."
    assert reader.prompts == ["Delete this task? [y/N] "]
    assert state.collection.tasks == ()


@pytest.mark.asyncio
async def test_delete_with_yes_flag(state: AppState) -> None:
    await state.collection.create("a", "a")
    task_id = state.collection.tasks[0].id

    assert await registry.handle(state, f"/rm #{task_id} -y") == f"Task #{task_id} deleted."


@pytest.mark.asyncio
async def test_list_status_and_help(state: AppState) -> None:
    assert "No tasks yet" in (await registry.handle(state, "/list") or "")

    await state.collection.create("Buy milk", "2%", image_url="memory://b/i.png")
    listing = await registry.handle(state, "/ls") or ""
    assert "Buy milk" in listing and "image: memory://b/i.png" in listing

    status = await registry.handle(state, "/status") or ""
    assert "Backend: offline" in status
    assert "Change feed: unsubscribed" in status
    assert "Tasks in view: 1" in status

    help_text = await registry.handle(state, "/help") or ""
    assert "/add" in help_text and "/exit" in help_text


@pytest.mark.asyncio
async def test_refresh_command_reports_stale_view(state: AppState) -> None:
    table = FlakyTable(state.backend.table)
    state.collection._table = table
    table.fail.add("select_all")

    reply = await registry.handle(state, "/refresh") or ""
    assert reply.startswith("Refresh failed")
