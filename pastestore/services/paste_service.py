from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from pastestore.domain.models import (
    MAX_TTL_SECONDS,
    PasteRecord,
    PasteState,
    ms_to_iso,
    now_ms,
)
from pastestore.domain.state_machine import state_of, validate_transition
from pastestore.observability import get_correlation_id
from pastestore.repositories.paste_repository import PasteRepository
from pastestore.services.ids import (
    DEFAULT_ID_LENGTH,
    generate_paste_id,
    is_valid_paste_id,
)
from pastestore.store import KeyValueStore


logger = logging.getLogger(__name__)


class PasteError(Exception):
    """Base class for paste-related errors."""


class InvalidPasteParameters(PasteError):
    """Raised when paste input is malformed or out of range."""


class PasteNotFoundError(PasteError):
    """Raised when a paste is absent, expired, or out of views."""


class PasteUnavailableError(PasteError):
    """Raised when a paste exists but is expired and so cannot be modified."""


class PasteIdExhausted(PasteError):
    """Raised when no free paste id was found within the allowed attempts."""


MAX_CONTENT_BYTES = 512 * 1024
MAX_BATCH_PASTES = 10

_NOT_FOUND_MESSAGE = "Paste not found or expired."


def _log_transition(paste_id: str, current: PasteState, target: PasteState) -> None:
    validate_transition(current, target)
    if current is target:
        return
    logger.info(
        "Paste state transition",
        extra={
            "event": "paste_state_transition",
            "paste_id": paste_id,
            "state_from": current.value,
            "state_to": target.value,
            "correlation_id": get_correlation_id(),
        },
    )


def _optional_limit(name: str, value: Any, upper: Optional[int] = None) -> int:
    """Validate an optional positive integer; ``None`` maps to 0 (no limit)."""
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidPasteParameters(f"{name} must be an integer >= 1.")
    if upper is not None and value > upper:
        raise InvalidPasteParameters(f"{name} must be at most {upper}.")
    return value


@dataclass
class PasteService:
    """
    Application service implementing the paste lifecycle.

    Every operation round-trips to the store; nothing is cached in-process,
    so several service instances can share one store. Returns plain dict
    DTOs; ``PasteRecord`` instances do not escape this layer.
    """

    store: KeyValueStore
    key_prefix: str = "paste:"
    id_length: int = DEFAULT_ID_LENGTH
    id_attempts: int = 3
    max_content_bytes: int = MAX_CONTENT_BYTES
    max_batch: int = MAX_BATCH_PASTES
    clock: Callable[[], int] = now_ms
    id_factory: Callable[[int], str] = generate_paste_id
    _repo: PasteRepository = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._repo = PasteRepository(
            self.store,
            key_prefix=self.key_prefix,
            clock=self.clock,
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------
    def _clean_content(self, content: Any) -> str:
        if not isinstance(content, str) or not content.strip():
            raise InvalidPasteParameters(
                "content is required and must be a non-empty string."
            )
        trimmed = content.strip()
        try:
            size = len(trimmed.encode("utf-8"))
        except UnicodeEncodeError as exc:
            # Lone surrogates survive JSON decoding but have no UTF-8 form.
            raise InvalidPasteParameters("content must be valid Unicode text.") from exc
        if size > self.max_content_bytes:
            raise InvalidPasteParameters(
                f"content must be at most {self.max_content_bytes} bytes when UTF-8 encoded."
            )
        return trimmed

    def _build_record(
        self,
        content: Any,
        ttl_seconds: Any,
        max_views: Any,
    ) -> PasteRecord:
        return PasteRecord(
            content=self._clean_content(content),
            ttl_seconds=_optional_limit("ttl_seconds", ttl_seconds, MAX_TTL_SECONDS),
            max_views=_optional_limit("max_views", max_views),
            created_at=self.clock(),
            views=0,
        )

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------
    def _allocate_id(self) -> str:
        for _ in range(self.id_attempts):
            candidate = self.id_factory(self.id_length)
            if not self._repo.exists(candidate):
                return candidate
            logger.warning(
                "Generated paste id already in use; regenerating",
                extra={
                    "event": "paste_id_collision",
                    "paste_id": candidate,
                    "correlation_id": get_correlation_id(),
                },
            )
        raise PasteIdExhausted(
            f"Could not allocate a free paste id in {self.id_attempts} attempts."
        )

    def _persist(self, record: PasteRecord, base_url: str) -> dict[str, Any]:
        paste_id = self._allocate_id()
        self._repo.create_paste(paste_id, record)
        _log_transition(paste_id, PasteState.ABSENT, PasteState.ACTIVE)
        logger.info(
            "Paste created",
            extra={
                "event": "paste_created",
                "paste_id": paste_id,
                "correlation_id": get_correlation_id(),
            },
        )
        return {
            "id": paste_id,
            "url": f"{base_url.rstrip('/')}/p/{paste_id}",
            "created_at": ms_to_iso(record.created_at),
        }

    def create_paste(
        self,
        *,
        content: str,
        ttl_seconds: Optional[int] = None,
        max_views: Optional[int] = None,
        base_url: str = "",
    ) -> dict[str, Any]:
        """
        Create a new paste enforcing business rules:

        - ``content`` must be non-empty after trimming, and fit ``max_content_bytes``
        - ``ttl_seconds`` / ``max_views``, when given, must be integers >= 1
        """
        try:
            record = self._build_record(content, ttl_seconds, max_views)
        except InvalidPasteParameters as exc:
            logger.warning(
                "Invalid parameters when creating paste",
                extra={
                    "event": "paste_create_invalid_parameters",
                    "error_type": str(exc),
                    "correlation_id": get_correlation_id(),
                },
            )
            raise
        return self._persist(record, base_url)

    def create_pastes_batch(
        self,
        candidates: Any,
        *,
        base_url: str = "",
    ) -> list[dict[str, Any]]:
        """
        Create up to ``max_batch`` pastes, each independently.

        Invalid candidates are skipped without being reported. Raises
        ``InvalidPasteParameters`` for an empty or oversized batch, or when no
        candidate survives validation.
        """
        if not isinstance(candidates, list) or not candidates:
            raise InvalidPasteParameters("pastes must be a non-empty array.")
        if len(candidates) > self.max_batch:
            raise InvalidPasteParameters(
                f"Maximum {self.max_batch} pastes can be created at once."
            )

        created: list[dict[str, Any]] = []
        for candidate in candidates:
            if not isinstance(candidate, Mapping):
                continue
            try:
                record = self._build_record(
                    candidate.get("content"),
                    candidate.get("ttl_seconds"),
                    candidate.get("max_views"),
                )
            except InvalidPasteParameters:
                continue
            created.append(self._persist(record, base_url))

        if not created:
            raise InvalidPasteParameters(
                "No valid pastes were created. Please check your input."
            )

        logger.info(
            "Paste batch created",
            extra={
                "event": "paste_batch_created",
                "correlation_id": get_correlation_id(),
            },
        )
        return created

    # -------------------------------------------------------------------------
    # Retrieval / viewing
    # -------------------------------------------------------------------------
    def _not_found(self, paste_id: str, reason: str) -> PasteNotFoundError:
        logger.info(
            "Paste not served",
            extra={
                "event": "paste_not_found",
                "paste_id": paste_id,
                "error_type": reason,
                "correlation_id": get_correlation_id(),
            },
        )
        return PasteNotFoundError(_NOT_FOUND_MESSAGE)

    def _note_time_expiry(self, paste_id: str, record: PasteRecord) -> None:
        # View exhaustion is logged by the fetch that consumed the last view;
        # elapsed time has no such moment, so it is recorded when first observed.
        if not record.is_view_exhausted():
            _log_transition(paste_id, PasteState.ACTIVE, PasteState.EXPIRED)

    def fetch_paste(self, paste_id: str) -> dict[str, Any]:
        """
        Retrieve a paste for viewing, counting the view.

        Rules:
        - absent, TTL-expired, or ``views >= max_views`` → ``PasteNotFoundError``
        - otherwise the view count is incremented (preserving the store TTL)
          and the content is returned, even when this view used up the
          last allowance
        - a record evicted mid-operation, or pushed past ``max_views`` by a
          concurrent view, → ``PasteNotFoundError``
        """
        if not is_valid_paste_id(paste_id):
            raise self._not_found(paste_id, "invalid_id")

        logger.info(
            "Paste access attempt",
            extra={
                "event": "paste_access_attempt",
                "paste_id": paste_id,
                "correlation_id": get_correlation_id(),
            },
        )

        record = self._repo.get_paste(paste_id)
        if record is None:
            raise self._not_found(paste_id, "absent")

        if state_of(record, self.clock()) is PasteState.EXPIRED:
            self._note_time_expiry(paste_id, record)
            raise self._not_found(paste_id, "expired")

        if self._repo.increment_views(paste_id) is None:
            raise self._not_found(paste_id, "evicted")

        updated = self._repo.get_paste(paste_id)
        if updated is None:
            raise self._not_found(paste_id, "evicted")

        if updated.is_view_overdrawn():
            raise self._not_found(paste_id, "view_limit_race")

        now = self.clock()
        if updated.is_view_exhausted():
            _log_transition(paste_id, PasteState.ACTIVE, PasteState.EXPIRED)

        logger.info(
            "Paste access successful",
            extra={
                "event": "paste_access_success",
                "paste_id": paste_id,
                "correlation_id": get_correlation_id(),
            },
        )
        expires_at = updated.expires_at
        return {
            "content": updated.content,
            "remaining_views": updated.remaining_views,
            "expires_at": ms_to_iso(expires_at) if expires_at is not None else None,
            "created_at": ms_to_iso(updated.created_at),
            # This view was valid when counted; only elapsed time can flag it.
            "is_expired": updated.is_time_expired(now),
        }

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------
    def update_paste_content(self, paste_id: str, content: str) -> dict[str, Any]:
        """
        Replace a paste's content without touching views, timestamps or limits.

        The remaining store TTL is carried over unchanged.
        """
        trimmed = self._clean_content(content)

        if not is_valid_paste_id(paste_id):
            raise self._not_found(paste_id, "invalid_id")

        record = self._repo.get_paste(paste_id)
        state = state_of(record, self.clock())
        if state is PasteState.ABSENT:
            raise self._not_found(paste_id, "absent")
        if state is PasteState.EXPIRED:
            self._note_time_expiry(paste_id, record)
            logger.info(
                "Rejected update of expired paste",
                extra={
                    "event": "paste_update_rejected",
                    "paste_id": paste_id,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise PasteUnavailableError("Cannot update expired paste.")

        if not self._repo.update_content(paste_id, trimmed):
            raise self._not_found(paste_id, "evicted")

        logger.info(
            "Paste updated",
            extra={
                "event": "paste_updated",
                "paste_id": paste_id,
                "correlation_id": get_correlation_id(),
            },
        )
        return {"content": trimmed}

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------
    def delete_paste(self, paste_id: str) -> None:
        """Remove the paste's key. Deleting an absent paste is a no-op."""
        state = state_of(self._repo.get_paste(paste_id), self.clock())
        self._repo.delete_paste(paste_id)
        _log_transition(paste_id, state, PasteState.ABSENT)
        logger.info(
            "Paste deleted",
            extra={
                "event": "paste_deleted",
                "paste_id": paste_id,
                "correlation_id": get_correlation_id(),
            },
        )
