# src/taskdeck/tasks/task_models.py

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class AttachmentCategory(StrEnum):
    """Attachment kind; the value doubles as the storage folder."""

    IMAGE = "images"
    VIDEO = "videos"


def _opt_str(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw).strip()
    return s or None


@dataclass(slots=True, frozen=True)
class Task:
    id: int
    title: str
    description: str

    image_url: str | None = None
    video_url: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Task | None:
        """
        Parse a remote row.

        Rows without a usable integer id are skipped (returns None).
        """
        try:
            task_id = int(row["id"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping row without a usable id: %r", row)
            return None

        return cls(
            id=task_id,
            title=str(row.get("title") or ""),
            description=str(row.get("description") or ""),
            image_url=_opt_str(row.get("image_url")),
            video_url=_opt_str(row.get("video_url")),
        )


@dataclass(slots=True, frozen=True)
class Attachment:
    """Binary blob chosen for upload; never persisted as an entity."""

    name: str
    data: bytes
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> Attachment:
        p = Path(path).expanduser()
        content_type, _ = mimetypes.guess_type(p.name)
        return cls(name=p.name, data=p.read_bytes(), content_type=content_type)
