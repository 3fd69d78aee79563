# src/taskdeck/tasks/collection.py

from __future__ import annotations

"""
TaskCollection: the only mediator between local intent and the remote `tasks` table.

Consistency model:
- the local view is a derived cache, replaced wholesale on every refresh (no merge, no diff)
- every successful mutation triggers a full refresh; failures never chain into one
- no optimistic updates: the view is stale until the refresh lands
- overlapping refreshes are not sequenced; the last one to complete wins

Every operation is log-and-continue: nothing raises past its own boundary.
"""

import logging
from collections.abc import Callable

from ..core.errors import ReadFailure, SyncError, WriteFailure
from ..core.ports import Row, TaskTable
from .task_models import Attachment, AttachmentCategory, Task
from .uploader import AttachmentUploader

logger = logging.getLogger(__name__)

ViewListener = Callable[[tuple[Task, ...]], None]

ORDER_COLUMN = "id"


class TaskCollection:
    def __init__(self, table: TaskTable, uploader: AttachmentUploader | None = None) -> None:
        self._table = table
        self._uploader = uploader
        self._tasks: tuple[Task, ...] = ()
        self._listeners: list[ViewListener] = []

        self.last_failure: SyncError | None = None
        self.refresh_count = 0

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    def get(self, task_id: int) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def add_listener(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ViewListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ---- failure bookkeeping ----

    def _fail(self, op: str, err: SyncError) -> None:
        self.last_failure = err
        logger.error("%s error: %s", op, err)

    def _crash(self, op: str, exc: Exception) -> None:
        # Unexpected (non-taxonomy) error: still terminal at this boundary.
        err: SyncError = ReadFailure(str(exc)) if op == "Read" else WriteFailure(str(exc))
        self.last_failure = err
        logger.exception("Unexpected %s error", op.lower())

    # ---- read ----

    async def refresh(self) -> tuple[Task, ...]:
        """Re-pull the whole collection (newest first). On failure keep the stale view."""
        try:
            rows = await self._table.select_all(order_by=ORDER_COLUMN, descending=True)
        except SyncError as e:
            self._fail("Read", e if isinstance(e, ReadFailure) else ReadFailure(str(e)))
            return self._tasks
        except Exception as e:
            self._crash("Read", e)
            return self._tasks

        parsed = [Task.from_row(r) for r in rows]
        view = tuple(t for t in parsed if t is not None)

        # Single assignment: readers never see a half-built view.
        self._tasks = view
        self.refresh_count += 1
        self.last_failure = None
        logger.debug("Refreshed view: %d tasks", len(view))

        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("View listener failed")

        return view

    # ---- writes ----

    async def create(
        self,
        title: str,
        description: str,
        image_url: str | None = None,
        video_url: str | None = None,
    ) -> bool:
        title = title or ""
        description = description or ""
        # Blank check only; the row keeps the values exactly as submitted.
        if not title.strip() or not description.strip():
            self._fail("Insert", WriteFailure("title and description are required"))
            return False

        row: Row = {
            "title": title,
            "description": description,
            "image_url": image_url,
            "video_url": video_url,
        }

        try:
            await self._table.insert([row])
        except SyncError as e:
            self._fail("Insert", e)
            return False
        except Exception as e:
            self._crash("Insert", e)
            return False

        logger.info("Task added: %r", title)
        await self.refresh()
        return True

    async def create_with_attachments(
        self,
        title: str,
        description: str,
        *,
        image: Attachment | None = None,
        video: Attachment | None = None,
    ) -> bool:
        """
        Form submit: upload the chosen files, then create the task.

        An attachment that fails to upload becomes "no attachment"; it never aborts creation.
        """
        image_url = None
        video_url = None
        if self._uploader is not None:
            if image is not None:
                image_url = await self._uploader.upload(image, AttachmentCategory.IMAGE)
            if video is not None:
                video_url = await self._uploader.upload(video, AttachmentCategory.VIDEO)
        elif image is not None or video is not None:
            logger.warning("No uploader configured; attachments ignored")

        return await self.create(title, description, image_url=image_url, video_url=video_url)

    async def update(self, task_id: int, description: str) -> bool:
        """Patch only the description of one task."""
        try:
            matched = await self._table.update({"description": description}, match={"id": task_id})
        except SyncError as e:
            self._fail("Update", e)
            return False
        except Exception as e:
            self._crash("Update", e)
            return False

        if not matched:
            self._fail("Update", WriteFailure(f"no task with id={task_id}"))
            return False

        logger.info("Task %s updated", task_id)
        await self.refresh()
        return True

    async def delete(self, task_id: int) -> bool:
        """Delete one task. Confirmation is the caller's responsibility."""
        try:
            matched = await self._table.delete(match={"id": task_id})
        except SyncError as e:
            self._fail("Delete", e)
            return False
        except Exception as e:
            self._crash("Delete", e)
            return False

        if not matched:
            self._fail("Delete", WriteFailure(f"no task with id={task_id}"))
            return False

        logger.info("Task %s deleted", task_id)
        await self.refresh()
        return True
