from __future__ import annotations

import logging
from http import HTTPStatus

from flask import Blueprint, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from pastestore.api import paste_service, public_base_url
from pastestore.api.schemas import (
    HealthResponse,
    PasteBatchCreateRequest,
    PasteBatchCreatedResponse,
    PasteCreateRequest,
    PasteCreatedResponse,
    PasteResponse,
    PasteUpdateRequest,
    PasteUpdatedResponse,
)
from pastestore.observability import get_correlation_id
from pastestore.services.paste_service import (
    InvalidPasteParameters,
    PasteIdExhausted,
    PasteNotFoundError,
    PasteUnavailableError,
)
from pastestore.store import StoreUnavailable, get_store


logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _invalid_body(exc: ValidationError) -> tuple[dict, int]:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
        for err in exc.errors()
    )
    return {"error": "Invalid request body", "details": details}, HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(StoreUnavailable)
@api_bp.errorhandler(PasteIdExhausted)
def _internal_error(exc: Exception) -> tuple[dict, int]:
    logger.error(
        "Request failed on the key-value store",
        exc_info=exc,
        extra={
            "event": "store_unavailable",
            "error_type": type(exc).__name__,
            "correlation_id": get_correlation_id(),
        },
    )
    return {"error": "Internal server error"}, HTTPStatus.INTERNAL_SERVER_ERROR


@api_bp.errorhandler(Exception)
def _unexpected_error(exc: Exception):
    if isinstance(exc, HTTPException):
        return exc
    logger.exception(
        "Unhandled error in API request",
        extra={
            "event": "unhandled_error",
            "error_type": type(exc).__name__,
            "correlation_id": get_correlation_id(),
        },
    )
    return {"error": "Internal server error"}, HTTPStatus.INTERNAL_SERVER_ERROR


@api_bp.route("/healthz", methods=["GET"])
def health() -> tuple[dict, int]:
    """Liveness check; reports store connectivity but always answers 200."""

    connected = get_store().ping()
    body = HealthResponse(store="connected" if connected else "disconnected").model_dump()
    return body, HTTPStatus.OK


@api_bp.route("/pastes", methods=["POST"])
def create_paste() -> tuple[dict, int]:
    """
    Create a new paste.

    Validation is handled by Pydantic; business rules by the service layer.
    """
    try:
        payload = PasteCreateRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return _invalid_body(exc)

    try:
        dto = paste_service().create_paste(
            content=payload.content,
            ttl_seconds=payload.ttl_seconds,
            max_views=payload.max_views,
            base_url=public_base_url(),
        )
    except InvalidPasteParameters as exc:
        return {"error": str(exc)}, HTTPStatus.BAD_REQUEST

    return PasteCreatedResponse(**dto).model_dump(), HTTPStatus.CREATED


@api_bp.route("/pastes/batch", methods=["POST"])
def create_pastes_batch() -> tuple[dict, int]:
    try:
        payload = PasteBatchCreateRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return _invalid_body(exc)

    try:
        created = paste_service().create_pastes_batch(
            payload.pastes,
            base_url=public_base_url(),
        )
    except InvalidPasteParameters as exc:
        return {"error": str(exc)}, HTTPStatus.BAD_REQUEST

    body = PasteBatchCreatedResponse(
        pastes=[PasteCreatedResponse(**dto) for dto in created]
    ).model_dump()
    return body, HTTPStatus.CREATED


@api_bp.route("/pastes/<paste_id>", methods=["GET"])
def fetch_paste(paste_id: str) -> tuple[dict, int]:
    """Return a paste's content; every successful call counts as one view."""
    try:
        dto = paste_service().fetch_paste(paste_id)
    except PasteNotFoundError as exc:
        return {"error": str(exc)}, HTTPStatus.NOT_FOUND

    return PasteResponse(**dto).model_dump(), HTTPStatus.OK


@api_bp.route("/pastes/<paste_id>", methods=["PUT"])
def update_paste(paste_id: str) -> tuple[dict, int]:
    try:
        payload = PasteUpdateRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return _invalid_body(exc)

    try:
        dto = paste_service().update_paste_content(paste_id, payload.content)
    except InvalidPasteParameters as exc:
        return {"error": str(exc)}, HTTPStatus.BAD_REQUEST
    except PasteNotFoundError as exc:
        return {"error": str(exc)}, HTTPStatus.NOT_FOUND
    except PasteUnavailableError as exc:
        return {"error": str(exc)}, HTTPStatus.CONFLICT

    return PasteUpdatedResponse(content=dto["content"]).model_dump(), HTTPStatus.OK
