from __future__ import annotations

import re
import secrets
import string


ID_ALPHABET = string.ascii_letters + string.digits
DEFAULT_ID_LENGTH = 10

# Accepts any length so ids minted under an older PASTE_ID_LENGTH still resolve.
_ID_PATTERN = re.compile(r"[A-Za-z0-9]{4,64}")


def generate_paste_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """Return a random alphanumeric paste id drawn from ``secrets``."""
    if length < 4:
        raise ValueError("Paste ids shorter than 4 characters are too guessable.")
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def is_valid_paste_id(paste_id: str) -> bool:
    return bool(_ID_PATTERN.fullmatch(paste_id or ""))
