# src/taskdeck/tasks/session.py

from __future__ import annotations

import logging
from typing import Any

from ..core.errors import AuthFailure
from ..core.ports import IdentityService

logger = logging.getLogger(__name__)


class SessionBootstrap:
    """
    Best-effort anonymous session.

    Called once at startup. On failure the app keeps running unauthenticated:
    no retry, nothing raised, nothing blocked.
    """

    def __init__(self, identity: IdentityService) -> None:
        self._identity = identity
        self.session: Any | None = None
        self.last_failure: AuthFailure | None = None

    @property
    def active(self) -> bool:
        return self.session is not None

    async def ensure_session(self) -> bool:
        if self.session is not None:
            return True

        try:
            session = await self._identity.sign_in_anonymously()
        except AuthFailure as e:
            self.last_failure = e
            logger.error("Auth error: %s (continuing unauthenticated)", e)
            return False
        except Exception as e:
            self.last_failure = AuthFailure(str(e))
            logger.exception("Unexpected auth error (continuing unauthenticated)")
            return False

        self.session = session
        self.last_failure = None
        logger.info("Anonymous session active")
        return True
