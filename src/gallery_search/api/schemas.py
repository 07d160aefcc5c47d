from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class SearchRequest(BaseModel):
    query: str | None = None
    limit: int | None = None


class SearchHit(BaseModel):
    id: str
    score: float
    metadata: dict[str, Any]


class ImageInput(BaseModel):
    # Unknown keys are ignored rather than rejected.
    model_config = ConfigDict(extra="ignore")

    id: str | int | None = None
    tags: list[Any] | str | None = None
    alt: str | None = None
    caption: str | None = None
    project: str | None = None
    src: str | None = None
    thumb: str | None = None


class IndexBatchRequest(BaseModel):
    images: list[ImageInput] | None = None


class IndexResponse(BaseModel):
    success: bool = True
    id: str


class ItemStatus(BaseModel):
    id: str
    success: bool
    error: str | None = None


class BatchError(BaseModel):
    code: str
    message: str


class IndexBatchResponse(BaseModel):
    success: bool
    indexed: int
    results: list[ItemStatus]
    error: BatchError | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "gallery-search"
