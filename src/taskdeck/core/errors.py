# src/taskdeck/core/errors.py

"""
Failure taxonomy of the sync layer.

Adapters translate SDK/transport errors into these. The sync layer catches them
at every operation boundary: they are logged and recorded, never re-raised.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for every remote-sync failure."""

    kind = "sync"


class AuthFailure(SyncError):
    """Anonymous sign-in failed; the app continues unauthenticated."""

    kind = "auth"


class UploadFailure(SyncError):
    """Attachment could not be stored or resolved to a public URL."""

    kind = "upload"


class WriteFailure(SyncError):
    """Insert/update/delete rejected (or matched nothing) remotely."""

    kind = "write"


class ReadFailure(SyncError):
    """Refresh failed; the local view stays stale."""

    kind = "read"


class FeedFailure(SyncError):
    """Change-feed channel could not be established or torn down."""

    kind = "feed"
