# src/taskdeck/tasks/uploader.py

from __future__ import annotations

import logging
import time

from ..core.errors import UploadFailure
from ..core.ports import ObjectStore
from .task_models import Attachment, AttachmentCategory

logger = logging.getLogger(__name__)


class AttachmentUploader:
    """
    Upload attachments under `<category>/<timestamp-ms>-<name>` and resolve a public URL.

    Overwrite-on-conflict is intended: a put is always an upsert.
    Failures are logged and reported as None; callers treat that as "no attachment".
    """

    def __init__(self, store: ObjectStore) -> None:
        self._store = store
        self._last_stamp = 0

    def _next_stamp(self) -> int:
        # Wall-clock millis, forced strictly increasing within the process.
        stamp = time.time_ns() // 1_000_000
        if stamp <= self._last_stamp:
            stamp = self._last_stamp + 1
        self._last_stamp = stamp
        return stamp

    def build_path(self, name: str, category: AttachmentCategory | str) -> str:
        folder = AttachmentCategory(category).value
        return f"{folder}/{self._next_stamp()}-{name}"

    async def upload(
        self,
        blob: Attachment | None,
        category: AttachmentCategory | str,
    ) -> str | None:
        if blob is None or not blob.data:
            return None

        try:
            path = self.build_path(blob.name, category)
        except ValueError as e:
            logger.error("Upload error: %s", UploadFailure(f"unknown attachment category {category!r}: {e}"))
            return None

        try:
            await self._store.put(path, blob.data, content_type=blob.content_type, upsert=True)
            url = await self._store.public_url(path)
        except UploadFailure as e:
            logger.error("Upload error path=%s: %s", path, e)
            return None
        except Exception:
            logger.exception("Unexpected upload error path=%s", path)
            return None

        if not url:
            logger.error("No public URL returned for path=%s", path)
            return None

        logger.info("Uploaded %s -> %s", path, url)
        return url
