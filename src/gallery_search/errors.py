"""Error taxonomy shared by every gallery-search component.

Validation errors describe bad caller input and map to 4xx responses.
Upstream errors wrap failures of the embedding model or the vector index and
map to 5xx responses. Nothing here retries.
"""

from __future__ import annotations

from typing import Any


class GallerySearchError(Exception):
    """Base error carrying a stable code and an HTTP status."""

    code = "INTERNAL"
    http_status = 500

    def __init__(self, message: str, *, detail: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload


class InvalidInput(GallerySearchError):
    """Caller input was rejected."""

    code = "INVALID_REQUEST"
    http_status = 400


class MissingId(InvalidInput):
    code = "MISSING_ID"

    def __init__(
        self, message: str = 'Missing "id" field', *, detail: Any | None = None
    ) -> None:
        super().__init__(message, detail=detail)


class EmptyBatch(InvalidInput):
    code = "EMPTY_BATCH"

    def __init__(
        self,
        message: str = 'Missing or empty "images" array',
        *,
        detail: Any | None = None,
    ) -> None:
        super().__init__(message, detail=detail)


class InvalidQuery(InvalidInput):
    code = "INVALID_QUERY"

    def __init__(
        self,
        message: str = 'Missing or invalid "query" field',
        *,
        detail: Any | None = None,
    ) -> None:
        super().__init__(message, detail=detail)


class NoEmbeddableText(InvalidInput):
    code = "NO_EMBEDDABLE_TEXT"

    def __init__(
        self,
        message: str = (
            "No text content to embed (provide caption, alt, tags, or project)"
        ),
        *,
        detail: Any | None = None,
    ) -> None:
        super().__init__(message, detail=detail)


class Unauthorized(GallerySearchError):
    code = "UNAUTHORIZED"
    http_status = 401

    def __init__(
        self, message: str = "Invalid or missing API key", *, detail: Any | None = None
    ) -> None:
        super().__init__(message, detail=detail)


class UpstreamError(GallerySearchError):
    """An external dependency failed."""

    code = "UPSTREAM_FAILED"
    http_status = 502


class EmbeddingUnavailable(UpstreamError):
    code = "EMBEDDING_UNAVAILABLE"
    http_status = 502


class IndexUnavailable(UpstreamError):
    code = "INDEX_UNAVAILABLE"
    http_status = 503


class DimensionMismatch(UpstreamError):
    """Embedding length disagrees with the index dimensionality."""

    code = "DIMENSION_MISMATCH"
    http_status = 500
