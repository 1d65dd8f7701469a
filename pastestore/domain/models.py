from __future__ import annotations

import enum
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional


class PasteState(str, enum.Enum):
    ABSENT = "ABSENT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# Ten years; keeps created_at + ttl well inside datetime and Redis EX limits.
MAX_TTL_SECONDS = 10 * 365 * 24 * 60 * 60

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def ms_to_iso(epoch_ms: int) -> str:
    """
    Render epoch milliseconds as an ISO-8601 UTC string, e.g. ``2024-01-01T00:00:00.000Z``.

    Values past year 9999 (only reachable through hand-edited records) clamp
    to the latest representable instant.
    """
    try:
        moment = _EPOCH + timedelta(milliseconds=epoch_ms)
    except OverflowError:
        moment = _LATEST if epoch_ms > 0 else _EPOCH
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class PasteRecord:
    """
    The persisted paste.

    ``ttl_seconds == 0`` means no time-based expiry and ``max_views == 0``
    means unlimited views. ``created_at`` is epoch milliseconds and never
    changes after creation.
    """

    content: str
    ttl_seconds: int = 0
    max_views: int = 0
    created_at: int = 0
    views: int = 0

    @property
    def expires_at(self) -> Optional[int]:
        if self.ttl_seconds <= 0:
            return None
        return self.created_at + self.ttl_seconds * 1000

    def is_time_expired(self, at_ms: int) -> bool:
        # The exact expiry millisecond is still valid.
        expires_at = self.expires_at
        return expires_at is not None and at_ms > expires_at

    def is_view_exhausted(self) -> bool:
        """True once no further view may be served (checked before incrementing)."""
        return self.max_views > 0 and self.views >= self.max_views

    def is_view_overdrawn(self) -> bool:
        """True when an increment went past the cap (checked after incrementing)."""
        return self.max_views > 0 and self.views > self.max_views

    def is_expired(self, at_ms: int) -> bool:
        return self.is_time_expired(at_ms) or self.is_view_exhausted()

    @property
    def remaining_views(self) -> Optional[int]:
        if self.max_views <= 0:
            return None
        return max(0, self.max_views - self.views)
