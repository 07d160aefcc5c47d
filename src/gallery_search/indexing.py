"""Single and batch indexing of image descriptions."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from gallery_search.embedding.base import EmbeddingClient
from gallery_search.errors import EmptyBatch, GallerySearchError, InvalidInput
from gallery_search.normalizer import NormalizedImage, normalize, require_id
from gallery_search.vector.base import IndexRecord, VectorIndex

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


@dataclass(frozen=True)
class _PreparedImage:
    id: str
    normalized: NormalizedImage


@dataclass
class ItemResult:
    """Outcome for one image of a batch."""

    id: str
    success: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class BatchIndexResult:
    """Outcome of ``index_batch``.

    ``indexed`` counts the items durably written, which is also the offset
    from which a caller can resume after a partial failure.
    """

    indexed: int
    results: list[ItemResult] = field(default_factory=list)
    error: GallerySearchError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "indexed": self.indexed,
            "results": [item.to_dict() for item in self.results],
        }
        if self.error is not None:
            payload["error"] = {
                "code": self.error.code,
                "message": self.error.message,
            }
        return payload


class IndexingOrchestrator:
    """Normalizes, embeds and upserts image descriptions."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndex,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            embedder: Embedding provider.
            index: Vector index gateway.
            batch_size: Items per embedding request; bounded by the
                provider's rate and size limits.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._embedder = embedder
        self._index = index
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def index_one(self, raw: Mapping[str, Any]) -> dict[str, str]:
        """Index a single image and return its id."""
        prepared = _prepare(raw)
        vector = await self._embedder.embed_one(prepared.normalized.text)
        await self._index.upsert([_to_record(prepared, vector)])
        logger.info("Indexed image %s", prepared.id)
        return {"id": prepared.id}

    async def index_batch(self, raws: Any) -> BatchIndexResult:
        """Index images in sequential fixed-size chunks.

        Every item is validated before the first chunk is sent. A failure in
        the first chunk is raised; a failure after at least one chunk was
        written is reported in the returned result.

        Raises:
            EmptyBatch: If ``raws`` is missing, empty or not a sequence.
            MissingId: If an item has no id.
            NoEmbeddableText: If an item has no text to embed.
        """
        if (
            raws is None
            or isinstance(raws, (str, bytes, Mapping))
            or not isinstance(raws, Sequence)
            or len(raws) == 0
        ):
            raise EmptyBatch()

        prepared: list[_PreparedImage] = []
        for position, raw in enumerate(raws):
            if not isinstance(raw, Mapping):
                raise InvalidInput(
                    "Each image must be an object", detail={"index": position}
                )
            try:
                prepared.append(_prepare(raw))
            except InvalidInput as exc:
                exc.detail = {"index": position}
                raise

        result = BatchIndexResult(indexed=0)
        for offset in range(0, len(prepared), self._batch_size):
            chunk = prepared[offset : offset + self._batch_size]
            logger.info(
                "Indexing chunk at offset %d (%d images)", offset, len(chunk)
            )
            try:
                vectors = await self._embedder.embed(
                    [item.normalized.text for item in chunk]
                )
                await self._index.upsert(
                    [_to_record(item, vector) for item, vector in zip(chunk, vectors)]
                )
            except GallerySearchError as exc:
                if result.indexed == 0:
                    raise
                logger.error(
                    "Batch indexing stopped at offset %d after %d images: %s",
                    offset,
                    result.indexed,
                    exc.message,
                )
                result.error = exc
                result.results.extend(
                    ItemResult(id=item.id, success=False, error=exc.message)
                    for item in chunk
                )
                return result

            result.indexed += len(chunk)
            result.results.extend(ItemResult(id=item.id, success=True) for item in chunk)

        logger.info("Indexed %d images", result.indexed)
        return result


def _prepare(raw: Mapping[str, Any]) -> _PreparedImage:
    image_id = require_id(raw)
    return _PreparedImage(id=image_id, normalized=normalize(raw))


def _to_record(item: _PreparedImage, vector: list[float]) -> IndexRecord:
    return IndexRecord(
        id=item.id,
        vector=list(vector),
        metadata=item.normalized.metadata.to_dict(),
    )
