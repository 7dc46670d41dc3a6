"""Redis cache backend implementing ICacheBackend."""

from __future__ import annotations

import redis

from ddbexport.core.exceptions import StateStoreError


class RedisCacheBackend:
    """Production ICacheBackend backed by Redis."""

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0) -> None:
        self._host = host
        self._port = port
        self._db = db
        self._client = redis.Redis(
            host=host, port=port, db=db, decode_responses=True,
        )

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(key)
        except Exception as exc:
            raise StateStoreError(f"Redis GET failed for key={key!r}: {exc}") from exc

    def setex(self, key: str, ttl: int, value: str) -> None:
        try:
            self._client.setex(key, ttl, value)
        except Exception as exc:
            raise StateStoreError(f"Redis SETEX failed for key={key!r}: {exc}") from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except Exception:
            return False
