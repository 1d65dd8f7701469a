from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

from pastestore.domain import codec
from pastestore.domain.codec import MalformedRecord
from pastestore.domain.models import PasteRecord, now_ms
from pastestore.observability import get_correlation_id
from pastestore.store import TTL_MISSING, KeyValueStore


logger = logging.getLogger(__name__)


class PasteRepository:
    """
    Repository for Paste records held in the key-value store.

    All store interaction for pastes should go through this class. The store
    only offers single-command atomicity, so the read-modify-write helpers
    here re-read the key's remaining TTL before every write-back.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key_prefix: str = "paste:",
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._key_prefix = key_prefix
        self._clock = clock

    def key_for(self, paste_id: str) -> str:
        return f"{self._key_prefix}{paste_id}"

    def _decode(self, paste_id: str, raw: object) -> Optional[PasteRecord]:
        try:
            return codec.decode(raw, clock=self._clock)
        except MalformedRecord as exc:
            logger.warning(
                "Stored paste payload is malformed; treating as absent",
                extra={
                    "event": "paste_record_malformed",
                    "paste_id": paste_id,
                    "error_type": str(exc),
                    "correlation_id": get_correlation_id(),
                },
            )
            return None

    def get_paste(self, paste_id: str) -> Optional[PasteRecord]:
        """Return the record for ``paste_id``, or ``None`` if absent or unreadable."""
        raw = self._store.get(self.key_for(paste_id))
        if raw is None:
            return None
        return self._decode(paste_id, raw)

    def exists(self, paste_id: str) -> bool:
        return self._store.get(self.key_for(paste_id)) is not None

    def create_paste(self, paste_id: str, record: PasteRecord) -> None:
        """Persist a new record; store-native expiry is attached only when ``ttl_seconds > 0``."""
        key = self.key_for(paste_id)
        payload = codec.encode(record)
        if record.ttl_seconds > 0:
            self._store.set_with_expiry(key, payload, record.ttl_seconds)
        else:
            self._store.set(key, payload)

    def _rewrite(
        self,
        paste_id: str,
        mutate: Callable[[PasteRecord], None],
    ) -> Optional[PasteRecord]:
        """
        Read, mutate and write back a record keeping its remaining store TTL.

        Returns the written record, or ``None`` when the key was missing,
        unreadable, or evicted before the write-back.
        """
        key = self.key_for(paste_id)
        raw = self._store.get(key)
        if raw is None:
            return None
        record = self._decode(paste_id, raw)
        if record is None:
            return None

        mutate(record)

        remaining = self._store.ttl_remaining(key)
        if remaining == TTL_MISSING:
            # Evicted between GET and TTL; writing now would resurrect it.
            return None

        payload = codec.encode(record)
        if remaining >= 0:
            # Redis rounds sub-second remainders down to 0.
            self._store.set_with_expiry(key, payload, max(remaining, 1))
        else:
            self._store.set(key, payload)
        return record

    def increment_views(self, paste_id: str) -> Optional[int]:
        """
        Add one view and return the new count, or ``None`` if the paste vanished.

        Not atomic across processes: concurrent callers may both increment.
        """

        def _bump(record: PasteRecord) -> None:
            record.views += 1

        record = self._rewrite(paste_id, _bump)
        return None if record is None else record.views

    def update_content(self, paste_id: str, content: str) -> bool:
        """Replace the content only; views, timestamps and limits are untouched."""

        def _replace(record: PasteRecord) -> None:
            record.content = content

        return self._rewrite(paste_id, _replace) is not None

    def delete_paste(self, paste_id: str) -> None:
        self._store.delete(self.key_for(paste_id))
