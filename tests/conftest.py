from __future__ import annotations

from typing import Any, Optional

import pytest
from flask import Flask
from flask.testing import FlaskClient

from pastestore import create_app
from pastestore.services.paste_service import PasteService
from pastestore.store import TTL_MISSING, TTL_NO_EXPIRY, StoreUnavailable


START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = START_MS) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class InMemoryStore:
    """
    Store double honoring the adapter contract.

    Keys with an expiry disappear once the shared clock passes it, and
    ``ttl_remaining`` answers with the same sentinels Redis uses.
    """

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[Any, Optional[int]]] = {}
        self.available = True
        self.writes: list[tuple[str, Optional[int]]] = []

    def _check(self) -> None:
        if not self.available:
            raise StoreUnavailable("store is down")

    def _live(self, key: str) -> Optional[tuple[Any, Optional[int]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() > expires_at:
            del self._data[key]
            return None
        return entry

    def set(self, key: str, value: str) -> None:
        self._check()
        self._data[key] = (value, None)
        self.writes.append((key, None))

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self._check()
        self._data[key] = (value, self._clock() + ttl_seconds * 1000)
        self.writes.append((key, ttl_seconds))

    def put_raw(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        expires_at = None if ttl_seconds is None else self._clock() + ttl_seconds * 1000
        self._data[key] = (value, expires_at)

    def get(self, key: str) -> Optional[Any]:
        self._check()
        entry = self._live(key)
        return None if entry is None else entry[0]

    def ttl_remaining(self, key: str) -> int:
        self._check()
        entry = self._live(key)
        if entry is None:
            return TTL_MISSING
        _, expires_at = entry
        if expires_at is None:
            return TTL_NO_EXPIRY
        return (expires_at - self._clock()) // 1000

    def expiry_of(self, key: str) -> Optional[int]:
        entry = self._live(key)
        return None if entry is None else entry[1]

    def delete(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)

    def ping(self) -> bool:
        return self.available

    def __contains__(self, key: str) -> bool:
        return self._live(key) is not None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(clock)


@pytest.fixture
def paste_service(store: InMemoryStore, clock: FakeClock) -> PasteService:
    return PasteService(store=store, clock=clock)


@pytest.fixture
def app(store: InMemoryStore) -> Flask:
    return create_app("testing", store=store)


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()
