from __future__ import annotations

from typing import Optional

from .models import PasteRecord, PasteState


class InvalidPasteStateTransition(Exception):
    """Raised when an invalid state transition is requested for a Paste."""


# Explicitly enumerated allowed transitions between distinct states.
_ALLOWED_TRANSITIONS: set[tuple[PasteState, PasteState]] = {
    (PasteState.ABSENT, PasteState.ACTIVE),
    (PasteState.ACTIVE, PasteState.EXPIRED),
    (PasteState.ACTIVE, PasteState.ABSENT),
    (PasteState.EXPIRED, PasteState.ABSENT),
}


def state_of(record: Optional[PasteRecord], at_ms: int) -> PasteState:
    """Classify a loaded record (or its absence) at the given instant."""
    if record is None:
        return PasteState.ABSENT
    if record.is_expired(at_ms):
        return PasteState.EXPIRED
    return PasteState.ACTIVE


def validate_transition(current: PasteState, target: PasteState) -> None:
    """
    Validate a transition between two Paste states.

    - Allowed transitions:
      ABSENT → ACTIVE, ACTIVE → EXPIRED, ACTIVE → ABSENT, EXPIRED → ABSENT.
    - Forbidden transitions raise ``InvalidPasteStateTransition``.
    - A \"no-op\" transition (``current == target``) is always allowed.
    """

    # No-op: staying in the same state is permitted.
    if current is target:
        return

    if (current, target) not in _ALLOWED_TRANSITIONS:
        raise InvalidPasteStateTransition(
            f"Cannot transition Paste from {current.value} to {target.value}."
        )
