# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the sync layer.

The sync layer depends on Protocols instead of the Supabase SDK.
This keeps the backing service swappable (Supabase / offline) and makes testing easier.

Adapters are expected to raise taxonomy errors from core.errors
(AuthFailure, UploadFailure, WriteFailure, ReadFailure, FeedFailure).
"""

from collections.abc import Callable, Mapping
from typing import Any, Awaitable, Protocol

Row = dict[str, Any]
# One remote row as a plain dict: {"id": 1, "title": "...", ...}.

ChangeCallback = Callable[[Mapping[str, Any]], None]


class IdentityService(Protocol):
    """Issues an anonymous, non-interactive session."""
    def sign_in_anonymously(self) -> Awaitable[Any]: ...


class ObjectStore(Protocol):
    def put(
            self,
            path: str,
            data: bytes,
            *,
            content_type: str | None = None,
            upsert: bool = True,
    ) -> Awaitable[None]: ...

    def public_url(self, path: str) -> Awaitable[str | None]: ...


class TaskTable(Protocol):
    """
    Structured collection store for one table.

    update/delete return the rows they matched, so callers can tell
    "nothing matched" apart from success.
    """

    def insert(self, rows: list[Row]) -> Awaitable[list[Row]]: ...
    def select_all(self, *, order_by: str, descending: bool = False) -> Awaitable[list[Row]]: ...
    def update(self, patch: Row, *, match: Row) -> Awaitable[list[Row]]: ...
    def delete(self, *, match: Row) -> Awaitable[list[Row]]: ...


class ChangeFeed(Protocol):
    """
    Push notifications for row-level events.

    callback may be invoked from any thread; consumers must hop back to their own loop.
    """

    def subscribe(
            self,
            table: str,
            callback: ChangeCallback,
            *,
            event: str = "*",
    ) -> Awaitable[Any]: ...

    def unsubscribe(self, handle: Any) -> Awaitable[None]: ...


class Backend(Protocol):
    """Bundle of the four collaborators of one backing service."""

    name: str
    identity: IdentityService
    objects: ObjectStore
    table: TaskTable
    feed: ChangeFeed

    def close(self) -> Awaitable[None]: ...
