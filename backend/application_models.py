from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApplicationRow(Base):
    """A saved filing application; the record is stored as its serialized document."""

    __tablename__ = "applications"
    id = Column(String(32), primary_key=True)
    owner_id = Column(String, nullable=False)
    filing_type = Column(String(16), nullable=False)
    current_step = Column(Integer, default=1)
    record = Column(JSON, nullable=False, default=dict)
    uploads = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("ix_applications_owner", "owner_id"),)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "filingType": self.filing_type,
            "currentStep": self.current_step,
            "record": self.record or {},
            "uploads": self.uploads or [],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
