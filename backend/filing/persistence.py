"""
Saving filing sessions to an ApplicationStore.

Writes for one application id are serialized: a second save waits for the
first to finish. The store's echo of a write is never merged back into the
session, so a slow response cannot overwrite newer local edits.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from core.errors import ApplicationNotFoundError
from core.logging import log_audit, log_error
from .collaborators import ApplicationStore
from .session import FilingSessionController, TransitionResult

logger = logging.getLogger(__name__)


class ApplicationSync:
    """Persists sessions through a store, one in-flight write per application."""

    def __init__(self, store: ApplicationStore):
        self.store = store
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        # session id -> application id assigned by the store
        self._application_ids: Dict[str, str] = {}

    def application_id(self, controller: FilingSessionController) -> Optional[str]:
        return self._application_ids.get(controller.session_id)

    def _payload(self, controller: FilingSessionController, owner_id: str) -> Dict[str, Any]:
        document = controller.export_document()
        return {
            "ownerId": owner_id,
            "filingType": document["filingType"],
            "currentStep": document["currentStep"],
            "record": document["record"],
            "uploads": document["uploads"],
        }

    async def save(self, controller: FilingSessionController, owner_id: str) -> TransitionResult:
        """
        Insert or update the session's application.

        Store failures are logged and returned as a rejection; the session is
        never modified by a save.
        """
        if controller.record is None:
            return TransitionResult.rejected("Nothing to save yet")

        # The payload is taken before waiting so it reflects the state at request time
        payload = self._payload(controller, owner_id)
        lock = self._locks[controller.session_id]
        async with lock:
            application_id = self._application_ids.get(controller.session_id)
            try:
                if application_id is None:
                    application_id = await self.store.insert(payload)
                    self._application_ids[controller.session_id] = application_id
                    action = "create"
                else:
                    await self.store.update(application_id, payload)
                    action = "update"
            except Exception as e:
                log_error(
                    "Saving application failed",
                    error=e,
                    context={"session_id": controller.session_id, "application_id": application_id},
                )
                controller.notices.append("Your application could not be saved. Please try again.")
                return TransitionResult.rejected("Saving the application failed")

        log_audit(action, "application", application_id, user_id=owner_id,
                  details={"filing_type": payload["filingType"]})
        return TransitionResult.ok(payload=application_id)

    async def save_and_advance(self, controller: FilingSessionController, owner_id: str) -> TransitionResult:
        """Advance only after the current state has been saved."""
        check = controller.validate_current_step()
        if not check.is_valid:
            return TransitionResult.from_check("Complete the required fields to continue", check)

        saved = await self.save(controller, owner_id)
        if not saved.accepted:
            return saved
        return controller.advance_step()

    async def load(self, application_id: str, controller: FilingSessionController) -> TransitionResult:
        """
        Restore a stored application into controller.

        Raises:
            ApplicationNotFoundError: If the store has no such application
        """
        row = await self.store.fetch_by_id(application_id)
        if row is None:
            raise ApplicationNotFoundError(application_id)

        result = controller.restore(row)
        if result.accepted:
            self._application_ids[controller.session_id] = application_id
        return result

    async def list_for_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        return await self.store.fetch_all_by_owner(owner_id)

    async def delete(self, application_id: str) -> bool:
        deleted = await self.store.delete(application_id)
        if deleted:
            for session_id, known_id in list(self._application_ids.items()):
                if known_id == application_id:
                    del self._application_ids[session_id]
            log_audit("delete", "application", application_id)
        return deleted
