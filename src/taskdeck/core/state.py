# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.change_feed import ChangeFeedListener
from ..tasks.collection import TaskCollection
from ..tasks.session import SessionBootstrap
from ..tasks.uploader import AttachmentUploader
from .ports import Backend


@dataclass
class TaskDraft:
    """Form contents; cleared only after a successful submit."""

    title: str = ""
    description: str = ""
    image_path: str = ""
    video_path: str = ""

    def clear(self) -> None:
        self.title = ""
        self.description = ""
        self.image_path = ""
        self.video_path = ""


@dataclass
class AppState:
    """
    Process-scoped state, built once by the composition root (cli/bootstrap.py).

    Every component that talks to the backing service gets it from here by reference.
    """

    settings: Any
    backend: Backend

    session: SessionBootstrap
    uploader: AttachmentUploader
    collection: TaskCollection
    feed: ChangeFeedListener

    draft: TaskDraft = field(default_factory=TaskDraft)

    @classmethod
    def wire(cls, settings: Any, backend: Backend) -> AppState:
        uploader = AttachmentUploader(backend.objects)
        collection = TaskCollection(backend.table, uploader)
        table_name = str(getattr(settings, "tasks_table", "tasks"))
        return cls(
            settings=settings,
            backend=backend,
            session=SessionBootstrap(backend.identity),
            uploader=uploader,
            collection=collection,
            feed=ChangeFeedListener(backend.feed, collection, table=table_name),
        )
