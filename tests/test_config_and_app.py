# tests/test_config_and_app.py

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path

import pytest

from taskdeck.cli.main import run_app
from taskdeck.config import Settings
from taskdeck.connectors import console_connector
from taskdeck.logging_setup import _ConsoleNoiseFilter
from taskdeck.tasks.change_feed import FeedState

from .fakes import ScriptedReader, wait_until

_ENV_NAMES = (
    "TASKDECK_SUPABASE_URL",
    "TASKDECK_SUPABASE_KEY",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "VITE_SUPABASE_URL",
    "VITE_SUPABASE_KEY",
    "TASKDECK_OFFLINE",
    "TASKDECK_STORAGE_BUCKET",
    "TASKDECK_CONSOLE_ENABLED",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_default_to_offline_without_credentials(clean_env) -> None:
    s = Settings.from_env()

    assert s.offline_mode is True
    assert s.supabase_configured is False
    assert s.tasks_table == "tasks"
    assert s.storage_bucket == "notes-images"
    assert s.feed_channel == "tasks-changes"


def test_settings_accept_vite_names_and_prefer_prefixed(clean_env) -> None:
    clean_env.setenv("VITE_SUPABASE_URL", "https://vite.supabase.co")
    clean_env.setenv("VITE_SUPABASE_KEY", "vite-key")
    clean_env.setenv("TASKDECK_SUPABASE_URL", "https://own.supabase.co")
    clean_env.setenv("TASKDECK_STORAGE_BUCKET", "media")

    s = Settings.from_env()

    assert s.supabase_url == "https://own.supabase.co"
    assert s.supabase_key == "vite-key"
    assert s.offline_mode is False
    assert s.storage_bucket == "media"


def test_offline_flag_wins_over_credentials(clean_env) -> None:
    clean_env.setenv("SUPABASE_URL", "https://x.supabase.co")
    clean_env.setenv("SUPABASE_KEY", "k")
    clean_env.setenv("TASKDECK_OFFLINE", "yes")

    assert Settings.from_env().offline_mode is True


def test_console_filter_hides_third_party_info() -> None:
    f = _ConsoleNoiseFilter()

    def rec(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert f.filter(rec("taskdeck.tasks.collection", logging.INFO))
    assert not f.filter(rec("taskdeck.tasks.change_feed", logging.INFO))
    assert f.filter(rec("taskdeck.tasks.change_feed", logging.WARNING))
    assert not f.filter(rec("httpx", logging.INFO))
    assert f.filter(rec("httpx", logging.ERROR))


@pytest.mark.asyncio
async def test_run_app_console_session_offline(settings, capsys: pytest.CaptureFixture[str]) -> None:
    reader = ScriptedReader(["/add Buy milk | 2%", "hello", "/list", "/exit"])

    state = await run_app(settings, read_line=reader)

    out = capsys.readouterr().out
    assert "Task added" in out
    assert "Not a command" in out
    assert "#1 Buy milk" in out
    assert state.session.active
    assert state.feed.state == FeedState.UNSUBSCRIBED
    assert state.backend.feed.subscriber_count == 0
    assert Path(settings.data_dir).is_dir()


@pytest.mark.asyncio
async def test_run_app_stops_feed_on_eof(settings) -> None:
    state = await run_app(settings, read_line=ScriptedReader([]))
    assert state.feed.state == FeedState.UNSUBSCRIBED


@pytest.mark.asyncio
async def test_stdin_reader_passes_eof_through(monkeypatch: pytest.MonkeyPatch) -> None:
    def eof(prompt: str) -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)

    with pytest.raises(EOFError):
        await console_connector._read_stdin(">>> ")


@pytest.mark.asyncio
async def test_blocked_stdin_read_is_cancelled_promptly(monkeypatch: pytest.MonkeyPatch) -> None:
    release = threading.Event()

    def blocking(prompt: str) -> str:
        release.wait(5.0)
        return "late"

    monkeypatch.setattr("builtins.input", blocking)

    reading = asyncio.create_task(console_connector._read_stdin(">>> "))
    await asyncio.sleep(0.02)
    reading.cancel()
    try:
        # Must not wait for input() to return.
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(reading, timeout=1.0)
    finally:
        release.set()


@pytest.mark.asyncio
async def test_cancelled_console_loop_detaches_its_listener(state) -> None:
    async def never(prompt: str) -> str:
        await asyncio.Event().wait()
        return ""

    loop_task = asyncio.create_task(console_connector.run_console_loop(state, read_line=never))
    assert await wait_until(lambda: len(state.collection._listeners) == 1)

    loop_task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await loop_task

    assert state.collection._listeners == []
