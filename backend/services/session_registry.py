"""
In-memory registry of live filing sessions.

Sessions are per-process; saved applications live in the application store.
"""

import logging
from typing import Dict, Optional

from core.errors import SessionNotFoundError
from core.logging import log_audit
from filing.session import FilingSessionController

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self):
        self._sessions: Dict[str, FilingSessionController] = {}

    def create(self, session_id: Optional[str] = None) -> FilingSessionController:
        controller = FilingSessionController(session_id=session_id)
        self._sessions[controller.session_id] = controller
        log_audit("create", "session", controller.session_id)
        return controller

    def get(self, session_id: str) -> FilingSessionController:
        """
        Raises:
            SessionNotFoundError: If no live session has this id
        """
        controller = self._sessions.get(session_id)
        if controller is None:
            raise SessionNotFoundError(session_id)
        return controller

    async def close(self, session_id: str) -> None:
        controller = self.get(session_id)
        await controller.cancel_pending()
        del self._sessions[session_id]
        log_audit("close", "session", session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    async def close_all(self) -> None:
        """Close every live session; used at shutdown."""
        for session_id in list(self._sessions):
            await self.close(session_id)
