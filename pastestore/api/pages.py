from __future__ import annotations

import logging
from http import HTTPStatus

from flask import Blueprint, render_template
from werkzeug.exceptions import HTTPException

from pastestore.api import paste_service
from pastestore.observability import get_correlation_id
from pastestore.services.paste_service import PasteIdExhausted, PasteNotFoundError
from pastestore.services.sanitize import escape_for_template, sanitize_html
from pastestore.store import StoreUnavailable


logger = logging.getLogger(__name__)

pages_bp = Blueprint("pages", __name__, url_prefix="/p")


@pages_bp.errorhandler(StoreUnavailable)
@pages_bp.errorhandler(PasteIdExhausted)
def _error_page(exc: Exception) -> tuple[str, int]:
    logger.error(
        "Paste page failed on the key-value store",
        exc_info=exc,
        extra={
            "event": "store_unavailable",
            "error_type": type(exc).__name__,
            "correlation_id": get_correlation_id(),
        },
    )
    return render_template("error.html"), HTTPStatus.INTERNAL_SERVER_ERROR


@pages_bp.errorhandler(Exception)
def _unexpected_error_page(exc: Exception):
    if isinstance(exc, HTTPException):
        return exc
    logger.exception(
        "Unhandled error rendering paste page",
        extra={
            "event": "unhandled_error",
            "error_type": type(exc).__name__,
            "correlation_id": get_correlation_id(),
        },
    )
    return render_template("error.html"), HTTPStatus.INTERNAL_SERVER_ERROR


@pages_bp.route("/<paste_id>", methods=["GET"])
def view_paste(paste_id: str) -> tuple[str, int]:
    """Server-rendered view of a paste. Counts as a view, like the JSON fetch."""
    try:
        dto = paste_service().fetch_paste(paste_id)
    except PasteNotFoundError:
        return render_template("not_found.html"), HTTPStatus.NOT_FOUND

    safe_html = sanitize_html(dto["content"])
    return (
        render_template(
            "paste.html",
            content_html=safe_html,
            content_literal=escape_for_template(safe_html),
            remaining_views=dto["remaining_views"],
            expires_at=dto["expires_at"],
            created_at=dto["created_at"],
        ),
        HTTPStatus.OK,
    )
