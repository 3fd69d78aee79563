# src/taskdeck/tasks/change_feed.py

from __future__ import annotations

"""
Change-feed listener.

Subscribes to every insert/update/delete on the remote table (from any client)
and re-pulls the whole collection for each event.

Events are treated as messages:
- the SDK callback only enqueues the payload (thread-safe hop onto our loop)
- a single pump task drains the queue and calls collection.refresh()

No event-type handling, no payload inspection, no reconnect logic
(transport drops are the transport's problem).
"""

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from ..core.errors import SyncError
from ..core.ports import ChangeFeed
from .collection import TaskCollection

logger = logging.getLogger(__name__)


class FeedState(StrEnum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBED = "subscribed"


class ChangeFeedListener:
    def __init__(self, feed: ChangeFeed, collection: TaskCollection, *, table: str = "tasks") -> None:
        self._feed = feed
        self._collection = collection
        self._table = table

        self._handle: Any | None = None
        self._queue: asyncio.Queue[Mapping[str, Any]] | None = None
        self._pump: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._generation = 0

        self.state = FeedState.UNSUBSCRIBED
        self.events_received = 0

    @property
    def subscribed(self) -> bool:
        return self.state == FeedState.SUBSCRIBED

    def _on_event(self, payload: Mapping[str, Any]) -> None:
        # May be called from a transport thread.
        loop = self._loop
        queue = self._queue
        if loop is None or queue is None or self.state != FeedState.SUBSCRIBED:
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, payload)
        except RuntimeError:
            # Loop already closed.
            logger.debug("Change event dropped (loop closed)")

    async def _run_pump(self, queue: asyncio.Queue[Mapping[str, Any]]) -> None:
        while True:
            await queue.get()
            self.events_received += 1
            logger.debug("Change event #%d -> refresh", self.events_received)
            try:
                await self._collection.refresh()
            except Exception:
                # refresh() is log-and-continue already; keep the pump alive regardless.
                logger.exception("Refresh after change event failed")
            finally:
                queue.task_done()

    async def start(self) -> bool:
        """Unsubscribed -> Subscribed. Returns False (and stays unsubscribed) on failure."""
        if self.state == FeedState.SUBSCRIBED:
            return True

        self._loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Mapping[str, Any]] = asyncio.Queue()
        self._queue = queue
        generation = self._generation
        # Mark subscribed before the handshake so events racing the ack are not lost.
        self.state = FeedState.SUBSCRIBED

        try:
            handle = await self._feed.subscribe(self._table, self._on_event, event="*")
        except SyncError as e:
            if self._generation == generation:
                self._reset()
            logger.error("Change feed subscribe failed table=%s: %s", self._table, e)
            return False
        except Exception:
            if self._generation == generation:
                self._reset()
            logger.exception("Unexpected change feed subscribe error table=%s", self._table)
            return False

        if self._generation != generation:
            # stop() ran during the handshake: close the channel it could not see.
            try:
                await self._feed.unsubscribe(handle)
            except Exception:
                logger.exception("Change feed unsubscribe failed table=%s", self._table)
            logger.info("Change feed stopped during subscribe table=%s", self._table)
            return False

        self._handle = handle
        self._pump = asyncio.create_task(self._run_pump(queue), name=f"feed-pump:{self._table}")
        logger.info("Change feed subscribed table=%s", self._table)
        return True

    def _reset(self) -> None:
        self.state = FeedState.UNSUBSCRIBED
        self._handle = None
        self._queue = None
        self._loop = None

    async def stop(self) -> None:
        """
        Subscribed -> Unsubscribed (teardown).

        Closes the channel and the pump; in-flight create/update/delete calls are not touched.
        """
        if self.state == FeedState.UNSUBSCRIBED:
            return

        # Lets a start() still waiting on its handshake see that it was torn down.
        self._generation += 1
        handle = self._handle
        pump = self._pump
        self._reset()
        self._pump = None

        if handle is not None:
            try:
                await self._feed.unsubscribe(handle)
            except Exception:
                logger.exception("Change feed unsubscribe failed table=%s", self._table)

        if pump is not None:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump

        logger.info("Change feed unsubscribed table=%s", self._table)

    async def __aenter__(self) -> ChangeFeedListener:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
