from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from .models import PasteRecord, now_ms


class MalformedRecord(Exception):
    """Raised when a stored payload cannot be parsed as a paste record at all."""


def encode(record: PasteRecord) -> str:
    return json.dumps(
        {
            "content": record.content,
            "ttl_seconds": record.ttl_seconds,
            "max_views": record.max_views,
            "created_at": record.created_at,
            "views": record.views,
        },
        ensure_ascii=False,
    )


def _counter(value: Any, default: int) -> int:
    # bool is an int subclass; a stray true/false is not a counter.
    if isinstance(value, bool):
        return default
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    return default


def decode(raw: Any, *, clock: Callable[[], int] = now_ms) -> PasteRecord:
    """
    Build a ``PasteRecord`` from a stored payload.

    ``raw`` may be ``str``/``bytes`` JSON or an already-decoded mapping.
    Missing or ill-typed fields fall back to defaults (empty content, zero
    counters, the current time); only a payload that is not a JSON object
    raises ``MalformedRecord``.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedRecord("Paste payload is not valid UTF-8.") from exc

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise MalformedRecord("Paste payload is not valid JSON.") from exc
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise MalformedRecord(f"Paste payload must be an object, got {type(data).__name__}.")

    content = data.get("content")
    created_at = _counter(data.get("created_at"), -1)

    return PasteRecord(
        content=content if isinstance(content, str) else "",
        ttl_seconds=_counter(data.get("ttl_seconds"), 0),
        max_views=_counter(data.get("max_views"), 0),
        created_at=created_at if created_at >= 0 else clock(),
        views=_counter(data.get("views"), 0),
    )
