from __future__ import annotations

from flask import current_app, request

from pastestore.services.paste_service import PasteService
from pastestore.store import get_store


def paste_service() -> PasteService:
    """Build a ``PasteService`` bound to the current app's store and config."""
    config = current_app.config
    return PasteService(
        store=get_store(),
        key_prefix=config["PASTE_KEY_PREFIX"],
        id_length=config["PASTE_ID_LENGTH"],
        id_attempts=config["PASTE_ID_ATTEMPTS"],
        max_content_bytes=config["MAX_CONTENT_BYTES"],
        max_batch=config["MAX_BATCH_PASTES"],
    )


def public_base_url() -> str:
    """Base for share links: ``PUBLIC_BASE_URL`` if set, else the request host."""
    return current_app.config.get("PUBLIC_BASE_URL") or request.host_url.rstrip("/")
