"""
Interfaces for the services a filing session talks to.

Concrete adapters live in ``services/``; tests use in-memory fakes. Every
method is a coroutine so slow providers never block session mutations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SuggestionContext:
    """What a suggestion provider gets to see."""

    filing_type: str
    target_field: str
    step: int
    record: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BlobMetadata:
    name: str
    media_type: str
    category: str
    session_id: Optional[str] = None


class SuggestionProvider(ABC):
    """Generates text suggestions for a record field."""

    @abstractmethod
    async def suggest(self, context: SuggestionContext) -> List[str]:
        """Return suggestion strings; raise on provider failure."""


class ApplicationStore(ABC):
    """
    Persists serialized filing records.

    The store assigns ids and timestamps. Payloads are plain dicts:
    ``{"ownerId", "filingType", "record"}``; fetched rows add ``id``,
    ``createdAt`` and ``updatedAt``.
    """

    @abstractmethod
    async def insert(self, payload: Dict[str, Any]) -> str:
        pass

    @abstractmethod
    async def update(self, application_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def fetch_by_id(self, application_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def fetch_all_by_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def delete(self, application_id: str) -> bool:
        pass


class BlobStore(ABC):
    @abstractmethod
    async def upload(self, data: bytes, metadata: BlobMetadata) -> str:
        """Store bytes and return a public reference (URL or path)."""


class DocumentRenderer(ABC):
    @abstractmethod
    async def render(self, content: str) -> bytes:
        """Render document markup to a byte stream."""
