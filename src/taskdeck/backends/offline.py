# src/taskdeck/backends/offline.py

from __future__ import annotations

import itertools
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from ..core.errors import WriteFailure
from ..core.ports import ChangeCallback, Row

logger = logging.getLogger(__name__)


class _OfflineIdentity:
    def __init__(self) -> None:
        self.sign_ins = 0

    async def sign_in_anonymously(self) -> dict[str, Any]:
        self.sign_ins += 1
        return {"user_id": f"anon-{uuid.uuid4().hex[:12]}", "access_token": "offline"}


class _OfflineObjectStore:
    def __init__(self, bucket: str) -> None:
        self.bucket = bucket
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str | None] = {}

    async def put(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str | None = None,
        upsert: bool = True,
    ) -> None:
        if not upsert and path in self.objects:
            raise WriteFailure(f"object already exists: {path}")
        self.objects[path] = bytes(data)
        self.content_types[path] = content_type

    async def public_url(self, path: str) -> str | None:
        if path not in self.objects:
            return None
        return f"memory://{self.bucket}/{path}"


class _OfflineFeed:
    def __init__(self) -> None:
        self._subs: dict[int, tuple[str, ChangeCallback]] = {}
        self._ids = itertools.count(1)

    async def subscribe(self, table: str, callback: ChangeCallback, *, event: str = "*") -> int:
        handle = next(self._ids)
        self._subs[handle] = (table, callback)
        return handle

    async def unsubscribe(self, handle: Any) -> None:
        self._subs.pop(handle, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def publish(self, table: str, event_type: str, record: Mapping[str, Any] | None) -> None:
        payload = {"table": table, "eventType": event_type, "record": dict(record or {})}
        for sub_table, cb in list(self._subs.values()):
            if sub_table != table:
                continue
            try:
                cb(payload)
            except Exception:
                logger.exception("Offline feed subscriber failed")


class _OfflineTable:
    def __init__(self, name: str, feed: _OfflineFeed) -> None:
        self.name = name
        self._feed = feed
        self._rows: dict[int, Row] = {}
        self._ids = itertools.count(1)

    @staticmethod
    def _matches(row: Row, match: Row) -> bool:
        return all(row.get(k) == v for k, v in match.items())

    async def insert(self, rows: list[Row]) -> list[Row]:
        out: list[Row] = []
        for r in rows:
            row = dict(r)
            row["id"] = next(self._ids)
            self._rows[row["id"]] = row
            out.append(dict(row))
            self._feed.publish(self.name, "INSERT", row)
        return out

    async def select_all(self, *, order_by: str, descending: bool = False) -> list[Row]:
        rows = [dict(r) for r in self._rows.values()]
        rows.sort(key=lambda r: r.get(order_by), reverse=descending)
        return rows

    async def update(self, patch: Row, *, match: Row) -> list[Row]:
        out: list[Row] = []
        for row in self._rows.values():
            if self._matches(row, match):
                row.update(patch)
                out.append(dict(row))
        for row in out:
            self._feed.publish(self.name, "UPDATE", row)
        return out

    async def delete(self, *, match: Row) -> list[Row]:
        gone = [rid for rid, row in self._rows.items() if self._matches(row, match)]
        out = [self._rows.pop(rid) for rid in gone]
        for row in out:
            self._feed.publish(self.name, "DELETE", row)
        return out


class OfflineBackend:
    """
    In-memory backend used for demos when Supabase is not configured.

    Behaves like the hosted service from the client's point of view:
    - server-assigned auto-increment ids
    - upsert object store with memory:// public URLs
    - every insert/update/delete is pushed to all feed subscribers
    """

    name = "offline"

    def __init__(self, *, table: str = "tasks", bucket: str = "notes-images") -> None:
        self.identity = _OfflineIdentity()
        self.objects = _OfflineObjectStore(bucket)
        self.feed = _OfflineFeed()
        self.table = _OfflineTable(table, self.feed)

    async def close(self) -> None:
        return
