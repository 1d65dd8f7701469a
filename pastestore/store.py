from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import redis
from flask import Flask, current_app
from redis.exceptions import RedisError


logger = logging.getLogger(__name__)

# Sentinels returned by ``ttl_remaining``, mirroring the Redis TTL reply.
TTL_NO_EXPIRY = -1
TTL_MISSING = -2

STORE_EXTENSION_KEY = "paste_store"


class StoreUnavailable(Exception):
    """Raised when the key-value store cannot be reached or errors out."""


class KeyValueStore(Protocol):
    """
    Contract the paste repository relies on.

    ``get`` may hand back a raw string/bytes payload or an already-decoded
    mapping; callers must accept both.
    """

    def set(self, key: str, value: str) -> None: ...

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def get(self, key: str) -> Optional[Any]: ...

    def ttl_remaining(self, key: str) -> int: ...

    def delete(self, key: str) -> None: ...

    def ping(self) -> bool: ...


class RedisStore:
    """
    Thin adapter over a ``redis.Redis`` client.

    Every call is a single round-trip; nothing is retried. Backend failures
    surface as ``StoreUnavailable``.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> "RedisStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def set(self, key: str, value: str) -> None:
        try:
            self._client.set(key, value)
        except RedisError as exc:
            raise StoreUnavailable(f"SET {key} failed") from exc

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1 for an expiring write.")
        try:
            self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            raise StoreUnavailable(f"SET EX {key} failed") from exc

    def get(self, key: str) -> Optional[Any]:
        try:
            return self._client.get(key)
        except RedisError as exc:
            raise StoreUnavailable(f"GET {key} failed") from exc

    def ttl_remaining(self, key: str) -> int:
        """Seconds left on ``key``, or ``TTL_NO_EXPIRY`` / ``TTL_MISSING``."""
        try:
            return int(self._client.ttl(key))
        except RedisError as exc:
            raise StoreUnavailable(f"TTL {key} failed") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except RedisError as exc:
            raise StoreUnavailable(f"DEL {key} failed") from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except RedisError:
            logger.warning(
                "Key-value store ping failed",
                extra={"event": "store_unavailable", "error_type": "ping"},
            )
            return False


def init_store(app: Flask, store: KeyValueStore | None = None) -> KeyValueStore:
    """
    Attach a store to the Flask app.

    Uses ``store`` when given (tests, alternative backends); otherwise builds
    a ``RedisStore`` from ``app.config['REDIS_URL']``. The Redis client
    connects lazily, so no network traffic happens here.
    """
    if store is None:
        redis_url = app.config.get("REDIS_URL")
        if not redis_url:
            raise RuntimeError("REDIS_URL is not configured on the Flask app.")
        store = RedisStore.from_url(
            redis_url,
            socket_timeout=app.config.get("REDIS_SOCKET_TIMEOUT"),
        )

    app.extensions[STORE_EXTENSION_KEY] = store
    return store


def get_store() -> KeyValueStore:
    """Return the store bound to the current Flask app."""
    store = current_app.extensions.get(STORE_EXTENSION_KEY)
    if store is None:
        raise RuntimeError("Key-value store is not initialized. Call init_store(app) first.")
    return store
