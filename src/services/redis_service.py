"""Redis service backing the social battery snapshot store."""

from __future__ import annotations

import logging
import os
import ssl
from typing import Any

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisService:
    """Async Redis access with a None/False fallback when the server is unreachable."""

    def __init__(self, redis_url: str | None = None) -> None:
        self._redis_url = redis_url or os.environ.get("REDIS_URL", "redis://localhost:6379/0")
        self._client: redis.Redis | None = None

    @staticmethod
    def _tls_kwargs(redis_url: str) -> dict[str, Any]:
        """Build TLS keyword arguments when using rediss:// URLs."""
        if not redis_url.startswith("rediss://"):
            return {}

        cert_path = os.environ.get("REDIS_TLS_CERT_PATH")
        ssl_ctx = ssl.create_default_context(cafile=cert_path) if cert_path else ssl.create_default_context()
        ssl_ctx.check_hostname = True
        ssl_ctx.verify_mode = ssl.CERT_REQUIRED
        return {"ssl": ssl_ctx}

    async def _ensure_async_client(self) -> redis.Redis | None:
        """Get or create the async client; None while Redis is unreachable."""
        if self._client is None:
            try:
                client = redis.from_url(  # type: ignore[no-untyped-call]
                    self._redis_url,
                    decode_responses=True,
                    **self._tls_kwargs(self._redis_url),
                )
                await client.ping()
                self._client = client
            except (redis.ConnectionError, redis.TimeoutError):
                logger.warning("Redis unreachable at %s, using in-memory fallback", self._redis_url)
                self._client = None
        return self._client

    async def get(self, key: str) -> str | None:
        """Get the string stored at key."""
        client = await self._ensure_async_client()
        if client is None:
            return None
        result = await client.get(key)
        return str(result) if result is not None else None

    async def set(self, key: str, value: str) -> bool:
        """Store a string at key."""
        client = await self._ensure_async_client()
        if client is None:
            return False
        return bool(await client.set(key, value))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
