# src/taskdeck/backends/supabase_backend.py

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

import httpx
from supabase import AsyncClient, AuthError, PostgrestAPIError, StorageException, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from ..core.errors import AuthFailure, FeedFailure, ReadFailure, UploadFailure, WriteFailure
from ..core.ports import ChangeCallback, Row

logger = logging.getLogger(__name__)

SUBSCRIBE_TIMEOUT_SECONDS = 10.0


def _err_text(exc: BaseException) -> str:
    msg = getattr(exc, "message", None)
    if isinstance(msg, str) and msg.strip():
        return msg
    return str(exc) or exc.__class__.__name__


class SupabaseIdentity:
    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def sign_in_anonymously(self) -> Any:
        try:
            resp = await self._client.auth.sign_in_anonymously()
        except (AuthError, httpx.HTTPError) as e:
            raise AuthFailure(_err_text(e)) from e
        session = getattr(resp, "session", None)
        if session is None:
            raise AuthFailure("no session returned by sign_in_anonymously")
        return session


class SupabaseObjectStore:
    def __init__(self, client: AsyncClient, bucket: str) -> None:
        self._client = client
        self.bucket = bucket

    def _bucket(self):
        return self._client.storage.from_(self.bucket)

    async def put(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str | None = None,
        upsert: bool = True,
    ) -> None:
        file_options: dict[str, str] = {"upsert": "true" if upsert else "false"}
        if content_type:
            file_options["content-type"] = content_type
        try:
            await self._bucket().upload(path=path, file=data, file_options=file_options)
        except (StorageException, httpx.HTTPError) as e:
            raise UploadFailure(_err_text(e)) from e

    async def public_url(self, path: str) -> str | None:
        try:
            url = self._bucket().get_public_url(path)
            # Sync in some storage3 releases, a coroutine in others.
            if inspect.isawaitable(url):
                url = await url
        except (StorageException, httpx.HTTPError) as e:
            raise UploadFailure(_err_text(e)) from e
        if not isinstance(url, str) or not url.strip():
            return None
        return url


class SupabaseTable:
    def __init__(self, client: AsyncClient, name: str) -> None:
        self._client = client
        self.name = name

    def _query(self):
        return self._client.table(self.name)

    @staticmethod
    def _apply_match(builder, match: Row):
        for column, value in match.items():
            builder = builder.eq(column, value)
        return builder

    async def insert(self, rows: list[Row]) -> list[Row]:
        try:
            resp = await self._query().insert(rows).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise WriteFailure(_err_text(e)) from e
        return list(resp.data or [])

    async def select_all(self, *, order_by: str, descending: bool = False) -> list[Row]:
        try:
            resp = await self._query().select("*").order(order_by, desc=descending).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise ReadFailure(_err_text(e)) from e
        return list(resp.data or [])

    async def update(self, patch: Row, *, match: Row) -> list[Row]:
        try:
            resp = await self._apply_match(self._query().update(patch), match).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise WriteFailure(_err_text(e)) from e
        return list(resp.data or [])

    async def delete(self, *, match: Row) -> list[Row]:
        try:
            resp = await self._apply_match(self._query().delete(), match).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise WriteFailure(_err_text(e)) from e
        return list(resp.data or [])


class SupabaseChangeFeed:
    """postgres_changes over Supabase Realtime; one channel per subscription."""

    def __init__(self, client: AsyncClient, *, schema: str = "public", channel_name: str = "tasks-changes") -> None:
        self._client = client
        self._schema = schema
        self._channel_name = channel_name

    async def subscribe(self, table: str, callback: ChangeCallback, *, event: str = "*") -> Any:
        loop = asyncio.get_running_loop()
        ready: asyncio.Future[None] = loop.create_future()

        def on_status(status: Any, err: Exception | None = None) -> None:
            value = str(getattr(status, "value", status))
            logger.debug("Realtime channel %s status=%s err=%r", self._channel_name, value, err)
            if ready.done():
                return
            if value == "SUBSCRIBED":
                ready.set_result(None)
            elif value in ("CHANNEL_ERROR", "TIMED_OUT", "CLOSED"):
                ready.set_exception(FeedFailure(f"channel {value.lower()}: {err or ''}".strip()))

        try:
            channel = self._client.channel(self._channel_name)
            channel.on_postgres_changes(event, callback=callback, table=table, schema=self._schema)
            await channel.subscribe(on_status)
            await asyncio.wait_for(ready, timeout=SUBSCRIBE_TIMEOUT_SECONDS)
        except FeedFailure:
            raise
        except asyncio.TimeoutError as e:
            raise FeedFailure(f"no SUBSCRIBED ack within {SUBSCRIBE_TIMEOUT_SECONDS:.0f}s") from e
        except Exception as e:
            raise FeedFailure(_err_text(e)) from e
        return channel

    async def unsubscribe(self, handle: Any) -> None:
        try:
            await self._client.remove_channel(handle)
        except Exception as e:
            raise FeedFailure(_err_text(e)) from e


class SupabaseBackend:
    name = "supabase"

    def __init__(
        self,
        client: AsyncClient,
        *,
        table: str = "tasks",
        bucket: str = "notes-images",
        schema: str = "public",
        channel_name: str = "tasks-changes",
    ) -> None:
        self.client = client
        self.identity = SupabaseIdentity(client)
        self.objects = SupabaseObjectStore(client, bucket)
        self.table = SupabaseTable(client, table)
        self.feed = SupabaseChangeFeed(client, schema=schema, channel_name=channel_name)

    async def close(self) -> None:
        try:
            await self.client.remove_all_channels()
        except Exception:
            logger.debug("remove_all_channels failed", exc_info=True)


async def create_supabase_backend(settings) -> SupabaseBackend:
    """
    Build the Supabase client once per process.

    The client is held by AppState and passed down by reference (no module-level singleton).
    """
    url = (getattr(settings, "supabase_url", "") or "").strip()
    key = (getattr(settings, "supabase_key", "") or "").strip()
    if not url or not key:
        raise ValueError("Supabase is not configured: set TASKDECK_SUPABASE_URL and TASKDECK_SUPABASE_KEY")

    schema = getattr(settings, "db_schema", "public")
    client = await acreate_client(url, key, options=AsyncClientOptions(schema=schema))
    logger.info("Supabase client created url=%s schema=%s", url, schema)

    return SupabaseBackend(
        client,
        table=getattr(settings, "tasks_table", "tasks"),
        bucket=getattr(settings, "storage_bucket", "notes-images"),
        schema=schema,
        channel_name=getattr(settings, "feed_channel", "tasks-changes"),
    )
