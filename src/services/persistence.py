"""
Persistence for the Social Battery.

The core depends only on the BlobStore interface:

    load(key) -> bytes | None
    save(key, data) -> None

Two blobs are kept under fixed keys: the interaction log (JSON array,
timestamps as ISO-8601 strings) and the battery state snapshot. On load
every timestamp is parsed back into an aware datetime. A blob that fails
to parse or validate is discarded and replaced by defaults; the failure
is logged, never raised to the caller.

Backends:
- MemoryBlobStore: process-local dict (tests, default)
- SqlBlobStore: SQLAlchemy table social_battery_blobs
- RedisBlobStore: Redis strings, in-memory fallback while unreachable
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import redis.asyncio as redis
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.config.battery import (
    DEFAULT_LEVEL,
    DEFAULT_RECOVERY_RATE,
    INTERACTIONS_KEY,
    STATE_KEY,
    BatterySettings,
)
from src.lib.exceptions import PersistenceError, SerializationError, ValidationError
from src.models.base import Base
from src.models.battery import BatteryState, SocialInteraction, clamp_level
from src.models.snapshot import SnapshotBlob
from src.services.redis_service import RedisService

logger = logging.getLogger(__name__)


# =============================================================================
# Blob stores
# =============================================================================


class BlobStore(Protocol):
    """Abstract durable key-value store for JSON blobs."""

    async def load(self, key: str) -> bytes | None: ...

    async def save(self, key: str, data: bytes) -> None: ...

    async def close(self) -> None: ...


class MemoryBlobStore:
    """Process-local blob store."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    async def load(self, key: str) -> bytes | None:
        return self._blobs.get(key)

    async def save(self, key: str, data: bytes) -> None:
        self._blobs[key] = data

    async def close(self) -> None:
        pass


class SqlBlobStore:
    """
    Blob store backed by the social_battery_blobs table.

    Writes are small single-row upserts and run inline on the event loop.
    """

    def __init__(self, database_url: str | None = None, engine: Engine | None = None) -> None:
        if engine is None:
            url = database_url or "sqlite:///social_battery.db"
            if url.startswith("sqlite") and ":memory:" in url:
                # One shared connection, otherwise every checkout sees an empty database
                engine = create_engine(
                    url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                engine = create_engine(url)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine)
        Base.metadata.create_all(engine, tables=[SnapshotBlob.__table__])

    async def load(self, key: str) -> bytes | None:
        try:
            with self._session_factory() as session:
                row = session.get(SnapshotBlob, key)
                return bytes(row.payload) if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load blob {key!r}: {exc}") from exc

    async def save(self, key: str, data: bytes) -> None:
        try:
            with self._session_factory() as session:
                session.merge(SnapshotBlob(key=key, payload=data))
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save blob {key!r}: {exc}") from exc

    async def close(self) -> None:
        self._engine.dispose()


class RedisBlobStore:
    """Blob store backed by Redis strings."""

    def __init__(self, redis_service: RedisService) -> None:
        self._redis = redis_service
        self._fallback = MemoryBlobStore()

    async def load(self, key: str) -> bytes | None:
        try:
            value = await self._redis.get(key)
        except redis.RedisError as exc:
            raise PersistenceError(f"Failed to load blob {key!r} from Redis: {exc}") from exc
        if value is None:
            return await self._fallback.load(key)
        return value.encode("utf-8")

    async def save(self, key: str, data: bytes) -> None:
        try:
            stored = await self._redis.set(key, data.decode("utf-8"))
        except redis.RedisError as exc:
            raise PersistenceError(f"Failed to save blob {key!r} to Redis: {exc}") from exc
        if not stored:
            await self._fallback.save(key, data)

    async def close(self) -> None:
        await self._redis.close()


def create_blob_store(settings: BatterySettings) -> BlobStore:
    """Build the blob store selected by SOCIAL_BATTERY_STORAGE."""
    if settings.storage_backend == "sql":
        return SqlBlobStore(settings.database_url)
    if settings.storage_backend == "redis":
        return RedisBlobStore(RedisService(settings.redis_url))
    return MemoryBlobStore()


# =============================================================================
# Snapshot codec
# =============================================================================


@dataclass(frozen=True)
class LoadedSnapshot:
    """What survived loading; fields fall back to defaults independently."""

    interactions: tuple[SocialInteraction, ...] = ()
    current_level: float = DEFAULT_LEVEL
    recovery_rate: float = DEFAULT_RECOVERY_RATE
    last_interaction: SocialInteraction | None = None


def _dumps(value: Any) -> bytes:
    return json.dumps(value).encode("utf-8")


def _loads(data: bytes, what: str) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SerializationError(f"Corrupt {what} blob: {exc}") from exc


def serialize_interactions(interactions: Sequence[SocialInteraction]) -> bytes:
    return _dumps([i.to_dict() for i in interactions])


def deserialize_interactions(data: bytes) -> tuple[SocialInteraction, ...]:
    """
    Parse the interaction log blob.

    Raises:
        SerializationError: If the blob or any record is malformed
    """
    records = _loads(data, "interaction log")
    if not isinstance(records, list):
        raise SerializationError("Interaction log must be a JSON array")
    try:
        return tuple(SocialInteraction.from_dict(record) for record in records)
    except ValidationError as exc:
        raise SerializationError(f"Invalid interaction record: {exc}") from exc


def serialize_state(battery: BatteryState) -> bytes:
    """Battery snapshot; derived limits and stats are included for readers only."""
    return _dumps(battery.to_dict())


def deserialize_state(
    data: bytes,
    interactions: Sequence[SocialInteraction],
) -> tuple[float, float, SocialInteraction | None]:
    """
    Parse the state blob into (level, recovery rate, last interaction).

    The last interaction is resolved by id against the loaded log; an id
    that is not in the log resolves to None. Limits and weekly stats are
    not read back, the store recomputes them from the log.

    Raises:
        SerializationError: If the blob is malformed
    """
    payload = _loads(data, "battery state")
    if not isinstance(payload, dict):
        raise SerializationError("Battery state must be a JSON object")

    try:
        level = clamp_level(payload["current_level"])
        rate = max(0.0, float(payload.get("recovery_rate", DEFAULT_RECOVERY_RATE)))
    except (KeyError, TypeError, ValueError) as exc:
        raise SerializationError(f"Malformed battery state: {exc}") from exc

    last_id = payload.get("last_interaction_id")
    if last_id is not None and not isinstance(last_id, str):
        raise SerializationError(f"last_interaction_id must be a string, got {last_id!r}")
    by_id = {i.id: i for i in interactions}
    return level, rate, by_id.get(last_id) if last_id else None


class SnapshotRepository:
    """
    Reads and writes the two battery blobs through a BlobStore.

    Usage:
        repo = SnapshotRepository(MemoryBlobStore())
        await repo.save(interactions, battery)
        snapshot = await repo.load()
    """

    def __init__(self, blob_store: BlobStore) -> None:
        self._blobs = blob_store

    @property
    def blob_store(self) -> BlobStore:
        return self._blobs

    async def load(self) -> LoadedSnapshot:
        """Load both blobs. Never raises; unreadable blobs yield defaults."""
        interactions: tuple[SocialInteraction, ...] = ()
        try:
            raw = await self._blobs.load(INTERACTIONS_KEY)
            if raw is not None:
                interactions = deserialize_interactions(raw)
        except PersistenceError as exc:
            logger.warning("Discarding interaction log: %s", exc)
            interactions = ()

        try:
            raw = await self._blobs.load(STATE_KEY)
            if raw is None:
                return LoadedSnapshot(interactions=interactions)
            level, rate, last = deserialize_state(raw, interactions)
        except PersistenceError as exc:
            logger.warning("Discarding battery state: %s", exc)
            return LoadedSnapshot(interactions=interactions)

        return LoadedSnapshot(
            interactions=interactions,
            current_level=level,
            recovery_rate=rate,
            last_interaction=last,
        )

    async def save(
        self,
        interactions: Sequence[SocialInteraction],
        battery: BatteryState,
    ) -> None:
        """
        Write both blobs.

        Raises:
            PersistenceError: If the backend rejects a write
        """
        await self._blobs.save(INTERACTIONS_KEY, serialize_interactions(interactions))
        await self._blobs.save(STATE_KEY, serialize_state(battery))

    async def close(self) -> None:
        """Release the backend connection."""
        await self._blobs.close()
