"""
Snapshot Blob Model for the Social Battery.

The durable store keeps two JSON blobs under fixed keys: the interaction
log and the battery state snapshot. This table holds them for the SQL
backend, one row per key.

Data Classification: SENSITIVE (self-reported social activity and notes)
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, LargeBinary, String

from src.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SnapshotBlob(Base):
    """
    A persisted JSON blob.

    Attributes:
        key: Blob key (social_battery:interactions | social_battery:state)
        payload: UTF-8 encoded JSON
        updated_at: Time of the last successful write
    """

    __tablename__ = "social_battery_blobs"

    key = Column(String(100), primary_key=True)
    payload = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<SnapshotBlob(key={self.key!r}, bytes={len(self.payload or b'')})>"
