from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field, StrictStr

from pastestore.domain.models import MAX_TTL_SECONDS


PositiveInt = Annotated[int, Field(strict=True, ge=1)]
TtlSeconds = Annotated[int, Field(strict=True, ge=1, le=MAX_TTL_SECONDS)]


class PasteCreateRequest(BaseModel):
    content: StrictStr = Field(..., description="Paste content")
    ttl_seconds: Optional[TtlSeconds] = Field(
        default=None,
        description="Seconds until the paste expires (1 to 10 years); omit for no expiry",
    )
    max_views: Optional[PositiveInt] = Field(
        default=None,
        description="Maximum allowed views (>= 1); omit for unlimited",
    )


class PasteBatchCreateRequest(BaseModel):
    # Candidates are validated one by one by the service so that bad ones
    # can be skipped instead of failing the whole batch.
    pastes: list[Any] = Field(..., description="Up to 10 paste candidates")


class PasteUpdateRequest(BaseModel):
    content: StrictStr = Field(..., description="Replacement content")


class PasteCreatedResponse(BaseModel):
    id: str
    url: str
    created_at: str


class PasteBatchCreatedResponse(BaseModel):
    pastes: list[PasteCreatedResponse]


class PasteResponse(BaseModel):
    content: str
    remaining_views: Optional[int]
    expires_at: Optional[str]
    created_at: str
    is_expired: bool


class PasteUpdatedResponse(BaseModel):
    message: str = "Paste updated successfully"
    content: str


class HealthResponse(BaseModel):
    status: str = "ok"
    store: str = "connected"
