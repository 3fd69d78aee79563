# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- builds the backing-service client once and wires it into AppState
  (session, uploader, collection, change feed).
"""

from __future__ import annotations

import logging

from ..backends.offline import OfflineBackend
from ..config import get_settings
from ..core.ports import Backend
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def _offline_backend(settings) -> OfflineBackend:
    return OfflineBackend(
        table=getattr(settings, "tasks_table", "tasks"),
        bucket=getattr(settings, "storage_bucket", "notes-images"),
    )


async def create_backend(settings) -> Backend:
    if getattr(settings, "offline_mode", False):
        logger.warning(
            "Running OFFLINE (in-memory, nothing persisted). "
            "Set TASKDECK_SUPABASE_URL and TASKDECK_SUPABASE_KEY to use Supabase."
        )
        return _offline_backend(settings)

    try:
        from ..backends.supabase_backend import create_supabase_backend

        return await create_supabase_backend(settings)
    except Exception:
        # Fallback for demos / local runs without external services.
        logger.exception("Failed to create Supabase client; falling back to the offline backend.")
        return _offline_backend(settings)


async def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    backend = await create_backend(settings)
    return AppState.wire(settings, backend)
