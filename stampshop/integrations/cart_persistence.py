"""Key-value persistence backends for the serialized cart."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

import redis

from stampshop.core.constants import CART_EXPIRY_SECONDS
from stampshop.logging_config import logger


class CartPersistence(Protocol):
    """Stores one serialized cart record per key."""

    def load(self, key: str) -> str | None:
        ...

    def save(self, key: str, payload: str) -> None:
        ...


class MemoryCartPersistence:
    """Process-local storage, used in tests and as the Redis fallback."""

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    def load(self, key: str) -> str | None:
        return self._records.get(key)

    def save(self, key: str, payload: str) -> None:
        self._records[key] = payload


class JsonFileCartPersistence:
    """One JSON file per key inside ``directory``; writes replace the file atomically."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in key)
        return self._directory / f"{safe_key}.json"

    def load(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, payload: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class RedisCartPersistence:
    """Cart records in Redis with a 24h TTL refreshed on every save."""

    def __init__(self, redis_url: str | None = None, ttl: int = CART_EXPIRY_SECONDS):
        self._redis_url = redis_url
        self._ttl = ttl
        self._memory = MemoryCartPersistence()
        self._client = self._init_client()

    @property
    def uses_memory(self) -> bool:
        return self._client is None

    def _switch_to_memory_fallback(self, reason: Exception | str) -> None:
        logger.warning("Redis cart fallback to memory mode: %s", reason)
        self._client = None

    def _init_client(self):
        if not self._redis_url:
            logger.warning("Redis URL is not set; cart uses in-memory fallback")
            return None

        try:
            client = redis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client.ping()
            logger.info("Redis cart storage enabled")
            return client
        except Exception as exc:
            logger.warning("Redis cart init failed, fallback to in-memory: %s", exc)
            return None

    @staticmethod
    def _cart_key(key: str) -> str:
        return f"cart:{key}"

    def load(self, key: str) -> str | None:
        if not self._client:
            return self._memory.load(key)
        try:
            return self._client.get(self._cart_key(key))
        except redis.RedisError as exc:
            self._switch_to_memory_fallback(exc)
            return self._memory.load(key)

    def save(self, key: str, payload: str) -> None:
        if self._client:
            try:
                self._client.setex(self._cart_key(key), self._ttl, payload)
                return
            except redis.RedisError as exc:
                self._switch_to_memory_fallback(exc)
        self._memory.save(key, payload)
