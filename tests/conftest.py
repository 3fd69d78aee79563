# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.backends.offline import OfflineBackend
from taskdeck.core.state import AppState


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        console_enabled=True,
        supabase_url=None,
        supabase_key=None,
        offline_mode=True,
        tasks_table="tasks",
        db_schema="public",
        storage_bucket="notes-images",
        feed_channel="tasks-changes",
    )


@pytest.fixture()
def backend(settings: SimpleNamespace) -> OfflineBackend:
    """
    Real in-memory backend: its ordering/matching/feed behavior is part of what we test.
    """
    return OfflineBackend(table=settings.tasks_table, bucket=settings.storage_bucket)


@pytest.fixture()
def state(settings: SimpleNamespace, backend: OfflineBackend) -> AppState:
    return AppState.wire(settings, backend)
