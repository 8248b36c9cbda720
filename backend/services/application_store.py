"""
SQLAlchemy-backed application store.

Each call opens a short-lived ORM session in a worker thread. The store
assigns ids and timestamps; payloads are the serialized session documents.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from application_models import ApplicationRow
from core.errors import StoreError
from filing.collaborators import ApplicationStore

logger = logging.getLogger(__name__)


class SqlApplicationStore(ApplicationStore):
    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from sql_db import get_session_factory
            session_factory = get_session_factory()
        self._session_factory = session_factory

    def _run(self, operation: str, fn: Callable[[Session], Any]) -> Any:
        db = self._session_factory()
        try:
            result = fn(db)
            db.commit()
            return result
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Application store {operation} failed: {type(e).__name__}")
            raise StoreError(f"Application store {operation} failed") from e
        finally:
            db.close()

    @staticmethod
    def _apply(row: ApplicationRow, payload: Dict[str, Any]) -> None:
        if "ownerId" in payload:
            row.owner_id = payload["ownerId"]
        if "filingType" in payload:
            row.filing_type = payload["filingType"]
        if "currentStep" in payload:
            row.current_step = payload["currentStep"]
        if "record" in payload:
            row.record = payload["record"]
        if "uploads" in payload:
            row.uploads = payload["uploads"]

    async def insert(self, payload: Dict[str, Any]) -> str:
        def _insert(db: Session) -> str:
            row = ApplicationRow(id=uuid.uuid4().hex, record={}, uploads=[])
            self._apply(row, payload)
            db.add(row)
            return row.id

        application_id = await asyncio.to_thread(self._run, "insert", _insert)
        logger.info(f"Inserted application {application_id}")
        return application_id

    async def update(self, application_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        def _update(db: Session) -> Dict[str, Any]:
            row = db.get(ApplicationRow, application_id)
            if row is None:
                raise StoreError(
                    f"Application {application_id} does not exist",
                    details={"application_id": application_id},
                )
            self._apply(row, payload)
            db.flush()
            return row.to_dict()

        return await asyncio.to_thread(self._run, "update", _update)

    async def fetch_by_id(self, application_id: str) -> Optional[Dict[str, Any]]:
        def _fetch(db: Session) -> Optional[Dict[str, Any]]:
            row = db.get(ApplicationRow, application_id)
            return row.to_dict() if row else None

        return await asyncio.to_thread(self._run, "fetch", _fetch)

    async def fetch_all_by_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        def _fetch_all(db: Session) -> List[Dict[str, Any]]:
            rows = db.scalars(
                select(ApplicationRow)
                .where(ApplicationRow.owner_id == owner_id)
                .order_by(ApplicationRow.created_at.desc())
            ).all()
            return [row.to_dict() for row in rows]

        return await asyncio.to_thread(self._run, "list", _fetch_all)

    async def delete(self, application_id: str) -> bool:
        def _delete(db: Session) -> bool:
            row = db.get(ApplicationRow, application_id)
            if row is None:
                return False
            db.delete(row)
            return True

        return await asyncio.to_thread(self._run, "delete", _delete)
